"""
Registry of race sessions, addressed by id.
"""
from pitwall.config import Settings
from pitwall.core.exceptions import SessionNotFoundException
from pitwall.core.logging import get_logger
from pitwall.services.llm_client import LLMClient
from pitwall.services.race_session import RaceSession
from pitwall.services.race_setup import build_player, build_race_config, default_driver_profiles

logger = get_logger(__name__)


class SessionRegistry:
    """Creates race sessions from settings and hands them out by id."""

    def __init__(self, settings: Settings, llm_client: LLMClient | None = None):
        self.settings = settings
        self.llm_client = llm_client
        self.sessions: dict[str, RaceSession] = {}

    def create(self, session_id: str, **session_kwargs) -> RaceSession:
        """
        Build a session with the configured race and the default grid.

        Args:
            session_id: Id for the new session; an existing one is returned as is
            **session_kwargs: Extra RaceSession arguments (rng, clock, ...)

        Raises:
            ConfigurationError: If the configured race parameters are invalid
        """
        if session_id in self.sessions:
            return self.sessions[session_id]

        config = build_race_config(self.settings)
        profiles = default_driver_profiles()
        player = build_player(self.settings, profiles)

        session = RaceSession(
            session_id,
            config,
            profiles,
            player,
            llm_client=self.llm_client,
            commentary_timeout=self.settings.llm_timeout,
            **session_kwargs,
        )
        self.sessions[session_id] = session
        logger.info(
            f"Created session {session_id}: {config.laps} laps of {config.lap_length_meters:.0f}m "
            f"at {config.tick_hz:g} Hz, {len(profiles)} drivers"
        )
        return session

    def get(self, session_id: str) -> RaceSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundException(f"Session {session_id} not found")
        return session

    async def remove(self, session_id: str) -> None:
        """Close and forget a session."""
        session = self.sessions.pop(session_id, None)
        if session is not None:
            await session.close()

    async def close_all(self) -> None:
        for session_id in list(self.sessions):
            await self.remove(session_id)
