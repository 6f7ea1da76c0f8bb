"""
Content schemas for the training library.

Defines Pydantic models for the three fetched payloads:
- Catalog (programs.json) with its ProgramDescriptors
- Manifest (per program) with its ModuleDescriptors
- PageContent (per module) with a typed section list

Payloads are validated at the fetch boundary; a payload that fails validation
never produces partially populated state.
"""

from __future__ import annotations

import posixpath
from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

DEFAULT_ICON = "\U0001F4DA"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------


class ProgramDescriptor(_Payload):
    id: str
    title: str
    manifest_path: str = Field(validation_alias=AliasChoices("manifestPath", "manifest", "manifest_path"))
    category: str = "Other"
    subcategory: str | None = None
    icon: str = DEFAULT_ICON
    difficulty: str = "Beginner"
    duration: str = ""
    description: str = ""
    prerequisites: list[str] = []

    @property
    def manifest_dir(self) -> str:
        """Directory the manifest lives in; module files resolve against it."""
        return posixpath.dirname(self.manifest_path)


class Catalog(_Payload):
    title: str = "Training Library"
    programs: list[ProgramDescriptor]

    @model_validator(mode="after")
    def _unique_ids(self) -> "Catalog":
        seen: set[str] = set()
        for program in self.programs:
            if program.id in seen:
                raise ValueError(f"Duplicate program id: {program.id}")
            seen.add(program.id)
        return self

    @property
    def program_ids(self) -> set[str]:
        return {program.id for program in self.programs}

    def get(self, program_id: str | None) -> ProgramDescriptor | None:
        for program in self.programs:
            if program.id == program_id:
                return program
        return None

    def by_category(self) -> list[tuple[str, list[ProgramDescriptor]]]:
        """Programs grouped by category, categories sorted, catalog order kept inside."""
        groups: dict[str, list[ProgramDescriptor]] = {}
        for program in self.programs:
            groups.setdefault(program.category or "Other", []).append(program)
        return sorted(groups.items())


# -----------------------------------------------------------------------------
# Manifest
# -----------------------------------------------------------------------------


class ModuleDescriptor(_Payload):
    id: str
    title: str
    content_file: str = Field(validation_alias=AliasChoices("contentFile", "file", "content_file"))
    order: int
    category: str | None = None


class Manifest(_Payload):
    modules: list[ModuleDescriptor]

    @model_validator(mode="after")
    def _unique_ids(self) -> "Manifest":
        seen: set[str] = set()
        for module in self.modules:
            if module.id in seen:
                raise ValueError(f"Duplicate module id: {module.id}")
            seen.add(module.id)
        return self

    def sorted_modules(self) -> list[ModuleDescriptor]:
        # sorted() is stable: equal orders keep their manifest position
        return sorted(self.modules, key=lambda module: module.order)


def resolve_content_path(manifest_path: str, content_file: str) -> str:
    """Join a module's relative file reference onto its manifest directory."""
    base = posixpath.dirname(manifest_path)
    if not base:
        return content_file
    return posixpath.join(base, content_file)


# -----------------------------------------------------------------------------
# Page content
# -----------------------------------------------------------------------------


class HeadingSection(_Payload):
    type: Literal["heading"]
    content: str


class SubheadingSection(_Payload):
    type: Literal["subheading"]
    content: str


class ParagraphSection(_Payload):
    type: Literal["paragraph"]
    content: str


class ListSection(_Payload):
    type: Literal["list"]
    items: list[str]
    ordered: bool = False


class CodeSection(_Payload):
    type: Literal["code"]
    content: str
    language: str | None = None


class QuoteSection(_Payload):
    type: Literal["quote"]
    content: str


class ImageSection(_Payload):
    type: Literal["image"]
    src: str
    alt: str = ""
    caption: str | None = None


class VideoSection(_Payload):
    type: Literal["video"]
    url: str
    title: str | None = None


class QuizQuestion(_Payload):
    question: str
    options: list[str]
    correct: int
    explanation: str = ""

    @model_validator(mode="after")
    def _correct_in_range(self) -> "QuizQuestion":
        if not 0 <= self.correct < len(self.options):
            raise ValueError(f"Correct option {self.correct} out of range for '{self.question}'")
        return self


class QuizSection(_Payload):
    type: Literal["quiz"]
    questions: list[QuizQuestion]


Section = Annotated[
    Union[
        HeadingSection,
        SubheadingSection,
        ParagraphSection,
        ListSection,
        CodeSection,
        QuoteSection,
        ImageSection,
        VideoSection,
        QuizSection,
    ],
    Field(discriminator="type"),
]


class PageContent(_Payload):
    title: str
    sections: list[Section]
