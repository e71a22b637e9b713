"""Unit tests for grounding prompt assembly."""

from __future__ import annotations

from ragdesk.services.prompt_builder import PromptBuilder, PromptContext


def _context(**overrides) -> PromptContext:
    values = {
        "question": "How do I reset my VPN client?",
        "boundary": "Public",
        "user_role": "Customer",
        "internal_context": "To reset your VPN client, open Settings.",
    }
    values.update(overrides)
    return PromptContext(**values)


class TestPromptBuilder:
    def test_sections_in_order(self) -> None:
        prompt = PromptBuilder().build(_context())

        headers = [
            "=== HARD RULES (NON-NEGOTIABLE) ===",
            "=== USER METADATA ===",
            "=== INTERNAL EVIDENCE ===",
            "=== WEB EVIDENCE (OPTIONAL) ===",
            "=== USER QUESTION ===",
            "=== RESPONSE RULES (IMPORTANT) ===",
            "=== END RULES ===",
        ]
        positions = [prompt.index(header) for header in headers]
        assert positions == sorted(positions)

    def test_identity_uses_assistant_name(self) -> None:
        prompt = PromptBuilder(assistant_name="HelpBot").build(_context())
        assert prompt.startswith("You are HelpBot")

    def test_metadata_rendered(self) -> None:
        prompt = PromptBuilder().build(
            _context(boundary="Internal", user_role="Agent", user_group="emea", conversation_id="c-42")
        )
        assert "- boundary: Internal" in prompt
        assert "- userRole: Agent" in prompt
        assert "- userGroup: emea" in prompt
        assert "- conversationId: c-42" in prompt

    def test_missing_web_context_is_none_marker(self) -> None:
        prompt = PromptBuilder().build(_context(web_context="  "))
        web_section = prompt.split("=== WEB EVIDENCE (OPTIONAL) ===", 1)[1]
        assert web_section.lstrip().startswith("[none]")

    def test_web_context_included(self) -> None:
        prompt = PromptBuilder().build(_context(web_context="[web-evidence]\n[Web 1] Guide"))
        assert "[Web 1] Guide" in prompt

    def test_question_and_evidence_included(self) -> None:
        prompt = PromptBuilder().build(_context())
        assert "How do I reset my VPN client?" in prompt
        assert "To reset your VPN client, open Settings." in prompt

    def test_escalation_flag_defaults_false(self) -> None:
        assert "Escalation flag for this response: false." in PromptBuilder().build(_context())
        prompt = PromptBuilder().build(_context(escalation_flag=True))
        assert "Escalation flag for this response: true." in prompt
