# reelsync/infrastructure/config/engine_config.py
import os
import copy
import logging
from decimal import Decimal
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from reelsync.domain.machine.entities.symbol import Symbol, parse_symbols
from .loaders.yaml_loader import YamlConfigLoader, ConfigError, SchemaValidationError
from .validators.schema_validator import SchemaValidator


CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
                          "application", "config")
DEFAULT_CONFIG_PATH = os.path.join(CONFIG_DIR, "engine", "default_engine.yaml")
DEFAULT_SCHEMA_PATH = os.path.join(CONFIG_DIR, "schemas", "engine_schema.json")

PROVIDER_MODES = ("remote", "local", "remote_with_fallback")

logger = logging.getLogger("infrastructure.config.engine")


def _decimal(value, name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except Exception:
        raise ConfigError(f"{name} must be a decimal number, got {value!r}") from None
    if result < 0:
        raise ConfigError(f"{name} must be >= 0, got {value!r}")
    return result


@dataclass
class AnimationConfig:
    """Reel animation timing. Positions are measured in reel segments."""
    min_stop_segment: int = 25
    max_stop_segment: int = 40
    segment_increment: float = 0.125
    min_stop_time: float = 1.0
    max_stop_time: float = 8.0

    def __post_init__(self):
        if self.min_stop_segment < 1 or self.max_stop_segment < self.min_stop_segment:
            raise ConfigError(
                f"Invalid stop segment range [{self.min_stop_segment}, {self.max_stop_segment}]")
        if self.segment_increment <= 0:
            raise ConfigError("segment_increment must be positive")
        if self.min_stop_time < 0 or self.max_stop_time < self.min_stop_time:
            raise ConfigError(
                f"Invalid stop time window [{self.min_stop_time}, {self.max_stop_time}]")


@dataclass
class ProviderConfig:
    """Outcome provider policy: retry budget, fee escalation and spin costs."""
    mode: str = "remote_with_fallback"
    max_retries: int = 3
    retry_backoff: float = 0.5
    fee_multiplier: float = 1.25
    submit_timeout: float = 30.0
    base_fee: Dict[str, int] = field(default_factory=lambda: {
        "gas_limit": 200000,
        "max_fee_per_gas": 50_000_000_000,
        "max_priority_fee_per_gas": 2_000_000_000,
    })
    spin_cost: Decimal = Decimal("0.1")
    discounted_spin_cost: Decimal = Decimal("0.01")
    currency: str = "MON"

    def __post_init__(self):
        if self.mode not in PROVIDER_MODES:
            raise ConfigError(f"Unknown provider mode: {self.mode}")
        if self.max_retries < 0:
            raise ConfigError("max_retries must be >= 0")
        if self.fee_multiplier < 1:
            raise ConfigError("fee_multiplier must be >= 1")
        if self.submit_timeout <= 0:
            raise ConfigError("submit_timeout must be positive")
        self.spin_cost = _decimal(self.spin_cost, "spin_cost")
        self.discounted_spin_cost = _decimal(self.discounted_spin_cost, "discounted_spin_cost")


@dataclass
class OrchestratorConfig:
    outcome_timeout: float = 10.0
    reveal_delay: float = 0.0
    explorer_url: str = "https://testnet.monadexplorer.com"

    def __post_init__(self):
        if self.outcome_timeout <= 0:
            raise ConfigError("outcome_timeout must be positive")
        if self.reveal_delay < 0:
            raise ConfigError("reveal_delay must be >= 0")


@dataclass(frozen=True)
class Prize:
    """One entry of the reward table."""
    reward: Decimal = Decimal("0")
    bonus_spins: int = 0
    discount: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = "prize") -> "Prize":
        return cls(
            reward=_decimal(data.get("reward", "0"), f"{name}.reward"),
            bonus_spins=int(data.get("bonus_spins", 0)),
            discount=bool(data.get("discount", False)),
        )


@dataclass(frozen=True)
class ChanceRule:
    """A prize paid with some probability when a symbol shows anywhere on the payline."""
    symbol: Symbol
    probability: float
    prize: Prize


@dataclass
class RewardTableConfig:
    rare_award_probability: float = 0.05
    triple: Dict[Symbol, Prize] = field(default_factory=dict)
    double: Dict[Symbol, Prize] = field(default_factory=dict)
    any_symbol: List[ChanceRule] = field(default_factory=list)
    consolation_probability: float = 0.15
    consolation: Prize = field(default_factory=lambda: Prize(reward=Decimal("0.01")))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardTableConfig":
        triple = {Symbol.parse(name): Prize.from_dict(prize, f"triple.{name}")
                  for name, prize in data.get("triple", {}).items()}
        double = {Symbol.parse(name): Prize.from_dict(prize, f"double.{name}")
                  for name, prize in data.get("double", {}).items()}
        rules = [
            ChanceRule(
                symbol=Symbol.parse(rule["symbol"]),
                probability=float(rule["probability"]),
                prize=Prize.from_dict(rule, f"any_symbol.{rule['symbol']}"),
            )
            for rule in data.get("any_symbol", [])
        ]
        consolation = data.get("consolation", {})
        return cls(
            rare_award_probability=float(data.get("rare_award_probability", 0.05)),
            triple=triple,
            double=double,
            any_symbol=rules,
            consolation_probability=float(consolation.get("probability", 0.15)),
            consolation=Prize.from_dict(consolation, "consolation") if consolation
            else Prize(reward=Decimal("0.01")),
        )


@dataclass
class SimulatedLedgerConfig:
    min_latency: float = 0.5
    max_latency: float = 3.0
    congestion_probability: float = 0.1
    rejection_probability: float = 0.0
    starting_balance: Decimal = Decimal("10")
    reward_pool: Decimal = Decimal("100")

    def __post_init__(self):
        if self.min_latency < 0 or self.max_latency < self.min_latency:
            raise ConfigError(f"Invalid latency range [{self.min_latency}, {self.max_latency}]")
        self.starting_balance = _decimal(self.starting_balance, "starting_balance")
        self.reward_pool = _decimal(self.reward_pool, "reward_pool")


@dataclass
class HistoryConfig:
    enabled: bool = False
    path: str = "logs/spin_history.jsonl"


@dataclass
class EngineConfig:
    """Complete, validated engine configuration."""
    symbols: List[Symbol]
    strips: List[List[Symbol]]
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    reward_table: RewardTableConfig = field(default_factory=RewardTableConfig)
    simulated_ledger: SimulatedLedgerConfig = field(default_factory=SimulatedLedgerConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    rng: Dict[str, Any] = field(default_factory=lambda: {"strategy": "mersenne", "seed": None})
    logging: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.strips) != 3:
            raise ConfigError(f"Exactly 3 reel strips are required, got {len(self.strips)}")
        for index, strip in enumerate(self.strips):
            unknown = [s for s in strip if s not in self.symbols]
            if unknown:
                raise ConfigError(f"Reel {index} uses symbols outside the symbol set: {unknown}")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EngineConfig":
        """
        Build the configuration tree from a (schema-validated) dictionary.

        Raises:
            ConfigError: If a value is semantically invalid
        """
        data = copy.deepcopy(raw)
        try:
            symbols = parse_symbols(data.get("symbols", [s.value for s in Symbol]))
            strips = [parse_symbols(strip) for strip in data.get("reels", {}).get("strips", [])]
            reward_table = RewardTableConfig.from_dict(data.get("reward_table", {}))
        except (ValueError, KeyError) as e:
            raise ConfigError(str(e)) from e

        return cls(
            symbols=symbols,
            strips=strips,
            animation=AnimationConfig(**data.get("animation", {})),
            provider=ProviderConfig(**data.get("provider", {})),
            orchestrator=OrchestratorConfig(**data.get("orchestrator", {})),
            reward_table=reward_table,
            simulated_ledger=SimulatedLedgerConfig(**data.get("simulated_ledger", {})),
            history=HistoryConfig(**data.get("history", {})),
            rng=data.get("rng", {"strategy": "mersenne", "seed": None}),
            logging=data.get("logging", {}),
        )


def load_engine_config(file_path: Optional[str] = None,
                       overrides: Optional[Dict[str, Any]] = None,
                       schema_path: Optional[str] = DEFAULT_SCHEMA_PATH) -> EngineConfig:
    """
    Load, validate and build the engine configuration.

    The default configuration is always loaded first; ``file_path`` and
    ``overrides`` are deep-merged on top of it in that order.

    Args:
        file_path: Optional YAML file with deployment settings
        overrides: Optional dictionary merged last (used by the CLI and tests)
        schema_path: JSON schema used to validate the merged configuration

    Raises:
        ConfigError: If loading or validation fails
    """
    validator = SchemaValidator()
    loader = YamlConfigLoader(validator)

    config = loader.load_file(DEFAULT_CONFIG_PATH)
    if file_path:
        merge_config(config, loader.load_file(file_path))
    if overrides:
        merge_config(config, overrides)

    if schema_path:
        schema = loader.load_schema(schema_path)
        is_valid, errors, config = validator.validate_with_defaults(config, schema)
        if not is_valid:
            raise SchemaValidationError(file_path or DEFAULT_CONFIG_PATH, errors)

    logger.debug(f"Engine configuration loaded (file={file_path}, overrides={bool(overrides)})")
    return EngineConfig.from_dict(config)


def merge_config(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``source`` into ``target`` in place."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            merge_config(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target
