from typing import Literal

from pydantic import BaseModel, Field, field_validator


class RenderConfig(BaseModel):
    output_dir: str | None = None  # None: next to each markdown file
    languages: list[str] = []
    link_prefix: str = ""

    @field_validator("languages", mode="before")
    @classmethod
    def _split_languages(cls, v: object) -> object:
        """Accept "dot,plantuml" as well as a list; trim, lower-case, de-duplicate."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, list):
            seen: list[str] = []
            for item in v:
                lang = str(item).strip().lower()
                if lang and lang not in seen:
                    seen.append(lang)
            return seen
        return v


class MdRenderConfig(BaseModel):
    render: RenderConfig = Field(default_factory=RenderConfig)
    executables: dict[str, str] = {}
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
