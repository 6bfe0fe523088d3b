"""Pydantic models for SPARQL 1.1 JSON results as served by Wikidata."""

from __future__ import annotations

import logging
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class WikidataBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "Wikidata %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class SparqlValue(WikidataBaseModel):
    type: Literal["uri", "literal", "bnode", "typed-literal"]
    value: str
    datatype: str | None = None
    lang: str | None = Field(default=None, alias="xml:lang")


class SparqlHead(WikidataBaseModel):
    vars: list[str] = Field(default_factory=list)
    link: list[str] | None = None


class SparqlResults(WikidataBaseModel):
    bindings: list[dict[str, SparqlValue]] = Field(default_factory=list)


class SparqlResponse(WikidataBaseModel):
    head: SparqlHead = Field(default_factory=SparqlHead)
    results: SparqlResults | None = None
    boolean: bool | None = None

    @property
    def bindings(self) -> list[dict[str, SparqlValue]]:
        return self.results.bindings if self.results else []
