from .config import TITLE_MAX, FOCUS_MAX

REQUIRED_FIELDS = ["title", "focus"]


def validate_review_input(title: str, author: str | None, focus: str) -> list[str] | None:
    """
    Returns every violation (not just the first), or None when the input is valid.
    author is accepted for symmetry with the prompt builder; it has no bounds.
    """
    errors = []
    title = (title or "").strip()
    focus = (focus or "").strip()

    if not title or not focus:
        errors.append("タイトルと焦点は必須です。")

    if len(title) > TITLE_MAX:
        errors.append(f"タイトルは{TITLE_MAX}文字以内である必要があります。")

    if len(focus) > FOCUS_MAX:
        errors.append(f"焦点は{FOCUS_MAX}文字以内である必要があります。")

    return errors or None
