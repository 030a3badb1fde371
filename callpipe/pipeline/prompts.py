"""Behavioural instructions and message templates for the pipeline.

A PromptProfile bundles everything that differs between assistant variants:
the system instruction, the JSON keys it asks the model to return, and the
notification wording. The orchestrator itself is variant-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MessageTemplate:
    """Fixed wording of the outbound notification."""

    title: str
    question_label: str
    not_clear_placeholder: str
    answer_label: str
    disclaimer: str
    no_speech_answer: str
    technical_error: str


@dataclass(frozen=True)
class PromptProfile:
    """A versioned assistant persona.

    Attributes:
        name: Profile identifier used in config (e.g. "sehat-assist-v1").
        system_prompt: Instruction sent as the system message.
        answer_key: JSON key holding the detailed answer.
        summary_key: JSON key holding the condensed summary.
        template: Notification wording for this persona.
    """

    name: str
    system_prompt: str
    template: MessageTemplate
    answer_key: str = "full_answer"
    summary_key: str = "summary"


SEHAT_TEMPLATE = MessageTemplate(
    title="*🎧 Sehat Assist – AI Helper*",
    question_label="_*Aapka sawal (voice se):*_ ",
    not_clear_placeholder="_*Aapka sawal clear nahi mila (audio low / noise).*_",
    answer_label="*Jawab:*",
    disclaimer=(
        "_Note: Ye general guidance hai. Serious ya lambi problem ho to turant "
        "doctor ya expert se milo._"
    ),
    no_speech_answer=(
        "Mujhe aapki baat clear nahi sunai di (audio low / noise). Kripya thoda "
        "zor se, shant jagah me phir se try karo."
    ),
    technical_error=(
        "Sehat Assist me kuch technical error aa gaya hai. Thodi der baad phir se "
        "try karein. Agar emergency ho to turant doctor ya hospital se contact karein."
    ),
)

SEHAT_ASSIST_PROMPT = """
You are "Sehat Assist" — a personal AI voice assistant designed to make the user's life easier in every possible way.
You are speaking to ONE user only (the device owner).

-------------------------
PRIMARY GOALS
-------------------------
- Make the user's life easier instantly, without asking unnecessary questions.
- Understand context quickly: health, tasks, reminders, planning, thinking, motivation, personal decisions.
- Give actionable steps, not vague talk.
- Always reply in simple, clear Hinglish (Latin script only).
- Provide BOTH:
  1) Full detailed answer (for WhatsApp)
  2) Short 1–3 line summary (for small wearable screen)

-------------------------
WHAT YOU MUST AVOID
-------------------------
- You are NOT a doctor or lawyer — do not claim to be.
- No exact medicine names, no dosages.
- No diagnostics or high-risk instructions.

-------------------------
RESPONSE FORMAT (VERY IMPORTANT)
-------------------------
You MUST always return your output in JSON with EXACT keys:

{
  "full_answer": "<long, helpful, detailed explanation here>",
  "summary": "<1–3 line condensed summary for OLED screen>"
}

full_answer max ~10 lines, clear Hinglish, friendly.
summary max 3 short lines, very clear.
""".strip()

PLAIN_TEMPLATE = MessageTemplate(
    title="*🎧 Voice Assistant*",
    question_label="_*Your question:*_ ",
    not_clear_placeholder="_*Your question could not be heard clearly.*_",
    answer_label="*Answer:*",
    disclaimer="_Note: This is general guidance, not professional advice._",
    no_speech_answer=(
        "I could not hear you clearly. Please speak a little louder from a quiet "
        "place and try again."
    ),
    technical_error="The assistant hit a technical error. Please try again in a little while.",
)

PLAIN_PROMPT = """
You are a helpful voice assistant.
Return your output as JSON with exactly two keys:
{"answer": "<helpful answer, at most ~10 lines>", "short": "<at most 3 short lines>"}
""".strip()


PROFILES: dict[str, PromptProfile] = {
    "sehat-assist-v1": PromptProfile(
        name="sehat-assist-v1",
        system_prompt=SEHAT_ASSIST_PROMPT,
        template=SEHAT_TEMPLATE,
    ),
    "plain-v1": PromptProfile(
        name="plain-v1",
        system_prompt=PLAIN_PROMPT,
        answer_key="answer",
        summary_key="short",
        template=PLAIN_TEMPLATE,
    ),
}


def get_profile(name: str) -> PromptProfile:
    """Look up a built-in profile by name.

    Raises:
        ValueError: If no profile has that name.
    """
    try:
        return PROFILES[name]
    except KeyError:
        available = ", ".join(PROFILES)
        raise ValueError(f"Unknown prompt profile '{name}'. Available: {available}") from None
