"""Grounded prompt assembly for the chat assistant."""

from typing import Any, Iterable

SYSTEM_INSTRUCTION = (
    "Sən 'Yoldaş' adlı süni intellekt köməkçisisən. Yalnız sənə təqdim olunan sənədlərə "
    "əsaslanaraq sualları cavablandır. Cavabların Azərbaycan dilində olmalıdır.\n\n"
)

CITATION_INSTRUCTION = (
    "Vacibdir: Cavab verərkən, əgər sənəddə müəyyən maddə, bənd və ya bölməyə istinad edirsənsə "
    "(məsələn, 2.1.1 maddəsi, 5-ci bənd və s.), cavabında bu məlumatı dəqiq göstər. Məlumatı qısa "
    "olaraq mötərizədə rəqəmlərlə göstərməyin kifayətdir. Məsələn, əgər mətndə İnzibati Xətalar "
    "Məcəlləsinin 93-cü maddəsinin 3.1 bəndinə istinad edirsə, izahın sonunda mötərizədə belə "
    "göstər - İXM 93.3.1. Və yaxud da \"Yol Hərəkəti Haqqında\" qanunun 25-ci maddəsinin 2-ci "
    "bəndinə istinad edilirsə sonda belə göstər - \"Yol Hərəkəti Haqqında\" 25.2. İstinadın harada "
    "yerləşməsi barədə əlavə şərhə ehtiyac yoxdur.\n\n"
)

HISTORY_HEADER = "Əvvəlki söhbət:\n"
USER_LABEL = "İstifadəçi"
ASSISTANT_LABEL = "Siz"
NEW_QUESTION_PREFIX = "İstifadəçinin yeni sualı: "

PARAPHRASE_INSTRUCTION = (
    "\n\nVACİB: Cavabı öz sözlərinlə, sadə dillə izah et. Sənəddəki mətnləri olduğu kimi köçürmə, "
    "məzmunu öz cümlələrinlə ifadə et."
)


def role_label(role: str | None) -> str:
    # Anything that is not the user is rendered as the assistant.
    return USER_LABEL if role == "user" else ASSISTANT_LABEL


def _turn_fields(turn: Any) -> tuple[str | None, str]:
    if isinstance(turn, dict):
        return turn.get("role"), str(turn.get("content") or "")
    return getattr(turn, "role", None), str(getattr(turn, "content", "") or "")


def build_prompt(message: str, history: Iterable[Any] | None = None) -> str:
    """System instruction, then prior turns in order, then the new question."""
    prompt = SYSTEM_INSTRUCTION + CITATION_INSTRUCTION
    turns = list(history or [])
    if turns:
        prompt += HISTORY_HEADER
        for turn in turns:
            role, content = _turn_fields(turn)
            prompt += f"{role_label(role)}: {content}\n"
        prompt += "\n"
    return prompt + NEW_QUESTION_PREFIX + message


def retry_prompt(prompt: str) -> str:
    return prompt + PARAPHRASE_INSTRUCTION
