"""Pydantic models for category tree nodes, incoming payloads and AI configuration."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Keys a caller may never set: back-reference, bookkeeping and row-only extras.
SYSTEM_MANAGED_KEYS = frozenset(
    {
        "parent",
        "modifiedDate",
        "modified_date",
        "revision",
        "__v",
        "depth",
        "breadcrumb",
        "resolvedAiConfig",
    }
)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire (the grid and store contract)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class CategoryGenerationConfig(CamelModel):
    instructions: str | None = None
    max_depth: int | None = None
    suggested_structure: str | None = None


class FlashcardAiConfig(CamelModel):
    additional_prompt: str | None = None
    default_categories: list[str] | None = None
    focus_areas: list[str] | None = None
    default_difficulty: int | None = None


class QuestionAiConfig(CamelModel):
    additional_prompt: str | None = None
    default_difficulty: str | None = None
    focus_area: str | None = None
    question_types: list[str] | None = None


class TranscriptAiConfig(CamelModel):
    additional_prompt: str | None = None
    extraction_rules: list[str] | None = None


class AiConfig(CamelModel):
    """Per-node AI configuration. Every key is individually inheritable down the tree."""

    system_prompt: str | None = None
    domain_context: str | None = None
    category_generation_config: CategoryGenerationConfig | None = None
    flashcard_config: FlashcardAiConfig | None = None
    question_config: QuestionAiConfig | None = None
    transcript_config: TranscriptAiConfig | None = None
    inherit_to_children: bool | None = None


class CategoryTranslations(CamelModel):
    """Language code -> localized name. Other language codes are kept as extra keys."""

    es: str | None = None
    pt: str | None = None
    fr: str | None = None
    de: str | None = None

    def get(self, lang: str) -> str | None:
        value = getattr(self, lang, None)
        if value is None and self.model_extra:
            value = self.model_extra.get(lang)
        return value if value else None


_STRUCTURAL_FIELDS = frozenset({"id", "create_uuid", "created_date", "create_created_date", "children"})


def _normalize_identifier(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


class CategoryNode(CamelModel):
    """
    Stored category node.

    `id` accepts both `id` and `_id` on input and is normalized to a string so that
    differing identifier encodings compare equal. Unknown fields are preserved.
    """

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    active: bool = True
    is_active: bool = True
    create_uuid: str | None = None
    created_date: datetime | None = None
    create_created_date: datetime | None = None
    modified_date: datetime | None = None
    parent: str | None = None
    children: list["CategoryNode"] = Field(default_factory=list)
    ai_config: AiConfig | None = None
    translations: CategoryTranslations | None = None
    revision: int | None = Field(default=None, validation_alias=AliasChoices("revision", "__v"))

    @field_validator("id", "parent", "create_uuid", mode="before")
    @classmethod
    def _normalize_ids(cls, v: Any) -> str | None:
        return _normalize_identifier(v)

    @field_validator("children", mode="before")
    @classmethod
    def _none_children(cls, v: Any) -> Any:
        return [] if v is None else v

    def document_fields(self) -> dict[str, Any]:
        """JSON-ready scalar fields (no children, no revision) keyed by wire name."""
        return self.model_dump(by_alias=True, mode="json", exclude={"children", "revision"})

    def document(self) -> dict[str, Any]:
        """Full JSON-ready document including nested children."""
        return self.model_dump(by_alias=True, mode="json")


class CategoryPayload(CamelModel):
    """
    Externally supplied node (UI edit, import row, sync descriptor).

    Has no `parent` field: it is dropped before parsing and the reconciler recomputes it.
    Creation dates are only honoured when re-materializing a node that also carries
    its `id`; they never change an existing node.
    """

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str | None = None
    active: bool | None = None
    is_active: bool | None = None
    create_uuid: str | None = None
    created_date: datetime | None = None
    create_created_date: datetime | None = None
    children: list["CategoryPayload"] | None = None
    ai_config: AiConfig | None = None
    translations: CategoryTranslations | None = None

    @model_validator(mode="before")
    @classmethod
    def _strip_system_managed(cls, data: Any) -> Any:
        if isinstance(data, CategoryNode):
            data = data.model_dump(by_alias=True)
        if isinstance(data, Mapping):
            return {k: v for k, v in data.items() if k not in SYSTEM_MANAGED_KEYS}
        return data

    @field_validator("id", "create_uuid", mode="before")
    @classmethod
    def _normalize_ids(cls, v: Any) -> str | None:
        return _normalize_identifier(v)

    def supplied_fields(self) -> dict[str, Any]:
        """
        Fields the caller actually supplied, keyed by attribute name.

        Structural and provenance keys (id, createUuid, creation dates, children) are
        excluded; a null name or activity flag counts as "not supplied". Extra keys are
        passed through.
        """
        out: dict[str, Any] = {}
        for name in type(self).model_fields:
            if name in _STRUCTURAL_FIELDS or name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            if value is None and name in ("name", "active", "is_active"):
                continue
            out[name] = value
        out.update(self.model_extra or {})
        return out


def as_payload(incoming: "CategoryPayload | CategoryNode | Mapping[str, Any]") -> CategoryPayload:
    """Coerce any accepted input shape to a CategoryPayload."""
    if isinstance(incoming, CategoryPayload):
        return incoming
    return CategoryPayload.model_validate(incoming)
