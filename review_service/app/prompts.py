"""
Prompt text for the review generator.
Everything here is pure string building — no I/O, no randomness.
"""
from .config import TARGET_CHAR_COUNT, MIN_CHAR_COUNT, MAX_CHAR_COUNT

INTRO_CHARS = 50
BODY_CHARS = 280
CONCLUSION_CHARS = 70

STRUCTURE_LINE = (
    f"導入（{INTRO_CHARS}字）→ 本文（{BODY_CHARS}字）→ 結論（{CONCLUSION_CHARS}字）"
)

SYSTEM_INSTRUCTION = f"""あなたは経験豊富な書評家です。次のガイドラインに沿って読書感想文を書いてください。

【ガイドライン】
1. 構成: {STRUCTURE_LINE}の三部構成
2. 文字数: 合計{TARGET_CHAR_COUNT}文字前後（{MIN_CHAR_COUNT}〜{MAX_CHAR_COUNT}文字）
3. 文体: です・ます調に統一
4. 各部の内容:
   - 導入: 本との出会いや第一印象
   - 本文: 読者が指定した焦点に沿った具体的な考察
   - 結論: 本から得た学びとこれからの展望
5. 留意点:
   - あらすじの要約ではなく、個人的な感想と考察を中心にする
   - 具体的な場面やエピソードに触れる
   - 自分の経験や価値観と結びつける"""


def build_prompt(title: str, author: str | None, focus: str) -> str:
    """
    Input: title, optional author, focus (all user text, passed through as-is)
    Output: the user-turn prompt. Without an author there is no author line at all.
    """
    book_lines = [f"タイトル: {title}"]
    if author:
        book_lines.append(f"著者: {author}")
    book_info = "\n".join(book_lines)

    book_ref = f"「{title}（{author}）」" if author else f"「{title}」"

    return f"""次の書籍について読書感想文を書いてください。

【書籍情報】
{book_info}

【感想文の焦点】
{focus}

【指示】
1. まず書籍{book_ref}のあらすじ、主なテーマ、世間の評価などの基本情報を調べてください
2. 「感想文の焦点」を中心に、{TARGET_CHAR_COUNT}文字前後（{MIN_CHAR_COUNT}〜{MAX_CHAR_COUNT}文字）の読書感想文を書いてください
3. あらすじの紹介にとどめず、焦点に沿った深い考察と個人的な感想を含めてください
4. {STRUCTURE_LINE}の構成で書いてください
5. 文体はです・ます調で統一してください

それでは読書感想文を書いてください:"""
