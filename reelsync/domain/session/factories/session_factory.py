# reelsync/domain/session/factories/session_factory.py
import logging
import uuid
from typing import List, Optional

from reelsync.domain.machine.entities.reel import ReelState
from ..entities.spin_session import SpinSession


class SpinSessionFactory:
    """
    Factory for SpinSession instances. Issues a fresh id per attempt.
    """
    def __init__(self, id_prefix: str = ""):
        self.logger = logging.getLogger("domain.session.factory")
        self.id_prefix = id_prefix
        self.created = 0

    def new_session_id(self) -> str:
        return f"{self.id_prefix}{uuid.uuid4().hex}"

    def create_session(self, animation: List[ReelState], session_id: Optional[str] = None) -> SpinSession:
        """
        Create a new spin session.

        Args:
            animation: Reel states returned by the animator for this attempt
            session_id: Optional explicit id (generated if not provided)
        """
        session_id = session_id or self.new_session_id()
        self.created += 1
        self.logger.debug(f"Creating spin session {session_id} (#{self.created})")
        return SpinSession(session_id, animation)
