from __future__ import annotations

from typing import Protocol, runtime_checkable, Optional, Dict, Any


@runtime_checkable
class GenAIClient(Protocol):
    """
    Remote generative-AI service abstraction (Gemini REST shapes).

    Every method returns the decoded JSON body untouched; interpreting it is
    the job of the per-kind services (video.service, research.service).
    Any exception raised here is a transport/remote error.
    """

    async def generate_videos(
        self,
        prompt: str,
        model: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Start a long-running video operation. Returns the operation object."""
        ...

    async def get_operation(self, name: str) -> Dict[str, Any]:
        """Fetch the current state of a long-running operation by name."""
        ...

    async def create_interaction(self, body: Dict[str, Any]) -> Dict[str, Any]: ...

    async def get_interaction(self, interaction_id: str) -> Dict[str, Any]: ...

    async def download(self, uri: str) -> bytes: ...
