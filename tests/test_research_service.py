import json

import pytest

from research.service import (
    ResearchJobKind,
    build_research_prompt,
    followup_research,
    text_outputs,
)


class FakeGenAI:
    def __init__(self, created=None, interactions=None, create_error=None):
        self.created = created if created is not None else {"id": "int-123", "status": "in_progress"}
        self.interactions = list(interactions or [])
        self.create_error = create_error
        self.bodies = []

    async def create_interaction(self, body):
        self.bodies.append(body)
        if self.create_error is not None:
            raise self.create_error
        return self.created

    async def get_interaction(self, interaction_id):
        return self.interactions.pop(0)


FINISHED = {
    "id": "int-123",
    "status": "completed",
    "agent": "deep-research-pro-preview-12-2025",
    "outputs": [
        {"type": "thought", "summary": "planning"},
        {"type": "text", "text": "draft"},
        {"type": "text", "text": "# Final report"},
    ],
}


def test_build_research_prompt():
    assert build_research_prompt("  AI coding assistants  ") == "AI coding assistants"
    assert build_research_prompt("q", "report") == "q"
    assert build_research_prompt("q", "Report") == "q"
    assert build_research_prompt("q", "outline") == "q\n\nFormat the output as: outline"
    with pytest.raises(ValueError):
        build_research_prompt("   ")


def test_text_outputs():
    assert text_outputs(FINISHED) == ["draft", "# Final report"]
    assert text_outputs({"outputs": None}) == []
    assert text_outputs("nope") == []


@pytest.mark.asyncio
async def test_start_runs_agent_in_background():
    genai = FakeGenAI()
    kind = ResearchJobKind(genai, agent="agent-x")

    started = await kind.start({"query": "compare vector stores", "format": "brief"})

    assert started.remote_id == "int-123"
    assert started.handle == "int-123"
    body = genai.bodies[0]
    assert body["agent"] == "agent-x"
    assert body["background"] is True
    assert body["input"].endswith("Format the output as: brief")
    assert body["agent_config"]["type"] == "deep-research"


@pytest.mark.asyncio
async def test_start_without_id_is_an_error():
    with pytest.raises(RuntimeError):
        await ResearchJobKind(FakeGenAI(created={}), agent="a").start({"query": "q"})


@pytest.mark.asyncio
async def test_probe_maps_interaction_status():
    genai = FakeGenAI(
        interactions=[
            {"id": "int-123", "status": "in_progress"},
            {"id": "int-123", "status": "cancelled"},
            {"id": "int-123", "status": "failed", "error": {"message": "quota"}},
            FINISHED,
        ]
    )
    kind = ResearchJobKind(genai, agent="a")

    p = await kind.probe("int-123")
    assert p.done is False

    p = await kind.probe("int-123")
    assert p.done is True
    assert p.error == "cancelled"

    p = await kind.probe("int-123")
    assert p.error == "quota"

    p = await kind.probe("int-123")
    assert p.done is True
    assert p.error is None
    assert p.result is FINISHED


@pytest.mark.asyncio
async def test_fetch_writes_full_interaction_json():
    kind = ResearchJobKind(FakeGenAI(), agent="a")
    data = await kind.fetch(FINISHED)
    doc = json.loads(data.decode("utf-8"))
    assert doc["id"] == "int-123"
    assert doc["outputs"] == FINISHED["outputs"]
    assert doc["rawInteraction"] == FINISHED

    assert await kind.fetch(None) is None


def test_artifact_key_and_summary():
    kind = ResearchJobKind(FakeGenAI(), agent="a")
    key = kind.artifact_key("int-123", FINISHED)
    assert key.startswith("deep-research-")
    assert key.endswith(".json")
    assert ":" not in key

    summary = kind.summarize(FINISHED)
    assert summary["text"] == "# Final report"
    assert summary["outputs"] == ["draft", "# Final report"]
    assert kind.summarize({"outputs": []})["text"] == "Research completed but no output found"


@pytest.mark.asyncio
async def test_followup_uses_previous_interaction():
    genai = FakeGenAI(created={"id": "int-456", "outputs": [{"type": "text", "text": "Because X."}]})

    answer = await followup_research(genai, "gemini-pro", "int-123", " Why? ")

    assert answer == "Because X."
    assert genai.bodies == [
        {"input": "Why?", "model": "gemini-pro", "previous_interaction_id": "int-123"}
    ]


@pytest.mark.asyncio
async def test_followup_errors():
    with pytest.raises(ValueError):
        await followup_research(FakeGenAI(), "m", "int-123", "  ")

    with pytest.raises(RuntimeError) as ei:
        await followup_research(FakeGenAI(create_error=ConnectionError("down")), "m", "int-123", "Why?")
    assert "Research follow-up failed" in str(ei.value)

    empty = FakeGenAI(created={"id": "int-789", "outputs": []})
    assert await followup_research(empty, "m", "int-123", "Why?") == "No text response received"


def test_artifact_keys_differ_per_job():
    kind = ResearchJobKind(FakeGenAI(), agent="a")
    assert kind.content_type == "application/json"
    assert kind.artifact_key("int-1", FINISHED) != kind.artifact_key("int-2", FINISHED)


def test_validate_rejects_blank_query_without_remote_call():
    genai = FakeGenAI()
    kind = ResearchJobKind(genai, agent="a")
    with pytest.raises(ValueError):
        kind.validate({"query": "  "})
    kind.validate({"query": "q", "format": "outline"})
    assert genai.bodies == []
