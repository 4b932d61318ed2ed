"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 reframe 场景的
system instruction 与 prompt 模板。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(name: str, locale: str = "en") -> str:
    """读取 prompts/<locale>/<name>.md，去掉末尾换行。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").rstrip("\n")


def load_system_instruction(locale: str = "en") -> str:
    return load_prompt("reframe_system", locale)


def render_reframe_prompt(user_input: str, locale: str = "en") -> str:
    """把用户原文原样嵌入 prompt 模板。"""

    template = load_prompt("reframe_prompt", locale)
    return template.replace("{user_input}", user_input)
