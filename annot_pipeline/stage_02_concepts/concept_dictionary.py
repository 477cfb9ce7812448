"""
Concept dictionary loading for Stage 2.

Dictionaries use the ConceptMapper XML layout: one <token> element per
concept carrying the concept identifier and canonical name, with one
<variant> child per surface form.

    <synonym>
      <token id="GO:0005623" canonical="cell">
        <variant base="cell"/>
        <variant base="cells"/>
      </token>
    </synonym>
"""

from __future__ import annotations

import gzip
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

DICTIONARY_FILE_TEMPLATE = "cmDict-{name}.xml"


@dataclass(frozen=True)
class ConceptEntry:
    concept_id: str
    canonical: str
    variants: tuple[str, ...]


@dataclass(frozen=True)
class ConceptMapperParams:
    name: str
    case_sensitive: bool = False
    longest_match: bool = True

    @classmethod
    def from_dict(cls, params: dict) -> "ConceptMapperParams":
        if "name" not in params:
            raise ValueError("ConceptMapper params require a 'name'")
        return cls(
            name=str(params["name"]),
            case_sensitive=bool(params.get("case_sensitive", False)),
            longest_match=bool(params.get("longest_match", True)),
        )


def dictionary_file_for(directory: str | Path, params: ConceptMapperParams) -> Path:
    """Resolve the dictionary file for a parameter set inside a dictionary directory."""
    return Path(directory) / DICTIONARY_FILE_TEMPLATE.format(name=params.name)


def load_concept_dictionary(path: str | Path) -> list[ConceptEntry]:
    """
    Load a ConceptMapper-style XML dictionary (optionally gzip-compressed).

    Raises:
        FileNotFoundError: if the dictionary file does not exist
        ValueError: if the file is not a well-formed dictionary
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Concept dictionary not found: {path}")

    try:
        if path.suffix == ".gz":
            with gzip.open(path, "rb") as f:
                root = ET.parse(f).getroot()
        else:
            root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Malformed concept dictionary {path}: {exc}") from exc

    entries: list[ConceptEntry] = []
    for token in root.iter("token"):
        concept_id = token.get("id")
        if not concept_id:
            continue
        canonical = token.get("canonical", "")
        variants = [v.get("base", "").strip() for v in token.iter("variant")]
        variants = [v for v in variants if v]
        if canonical and canonical not in variants:
            variants.insert(0, canonical)
        if not variants:
            continue
        entries.append(ConceptEntry(concept_id=concept_id, canonical=canonical, variants=tuple(variants)))
    return entries
