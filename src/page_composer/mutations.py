"""Pure operations over an ordered section collection.

Every function takes a sequence of sections and returns a new tuple; the
input is never modified. Positions are renumbered as the final step so that
``result[i].position == i`` always holds. Operations that name a section id
or index that does not exist return the collection unchanged.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from .models.section import Section, SectionType, new_section_id, utcnow

Sections = tuple[Section, ...]

EDITABLE_FIELDS = frozenset({"title", "subtitle", "content", "config", "styles", "is_active"})
TEXT_FIELDS = frozenset({"title", "subtitle", "content"})


def renumber(sections: Iterable[Section]) -> Sections:
    return tuple(section.with_position(index) for index, section in enumerate(sections))


def add(sections: Sequence[Section], section_type: SectionType | str) -> Sections:
    return renumber([*sections, Section.create(section_type, len(sections))])


def remove(sections: Sequence[Section], section_id: str) -> Sections:
    if not any(section.id == section_id for section in sections):
        return tuple(sections)
    return renumber(section for section in sections if section.id != section_id)


def duplicate(sections: Sequence[Section], section_id: str) -> Sections:
    # Copies are appended at the end of the collection, not next to the original.
    for section in sections:
        if section.id == section_id:
            return renumber([*sections, section.duplicate(len(sections))])
    return tuple(sections)


def move_up(sections: Sequence[Section], index: int) -> Sections:
    if index <= 0 or index >= len(sections):
        return tuple(sections)
    items = list(sections)
    items[index - 1], items[index] = items[index], items[index - 1]
    return renumber(items)


def move_down(sections: Sequence[Section], index: int) -> Sections:
    if index < 0 or index >= len(sections) - 1:
        return tuple(sections)
    items = list(sections)
    items[index], items[index + 1] = items[index + 1], items[index]
    return renumber(items)


def reorder(sections: Sequence[Section], source_index: int, dest_index: int) -> Sections:
    """Splice-move the element at ``source_index`` to ``dest_index``."""
    size = len(sections)
    if not (0 <= source_index < size) or not (0 <= dest_index < size):
        return tuple(sections)
    if source_index == dest_index:
        return tuple(sections)
    items = list(sections)
    moved = items.pop(source_index)
    items.insert(dest_index, moved)
    return renumber(items)


def update(sections: Sequence[Section], section_id: str, **changes: Any) -> Sections:
    """Replace editable fields of one section.

    Only ``EDITABLE_FIELDS`` may change; identity, type and position are
    owned by the collection.
    A ``None`` text field is stored as an empty string.
    """
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise TypeError(f"Fields cannot be edited: {sorted(unknown)}")
    result: list[Section] = []
    found = False
    for section in sections:
        if section.id == section_id:
            found = True
            update_values = dict(changes)
            for key in TEXT_FIELDS & update_values.keys():
                if update_values[key] is None:
                    update_values[key] = ""
            if update_values.get("is_active", True) is None:
                del update_values["is_active"]
            for key in ("config", "styles"):
                if key in update_values:
                    update_values[key] = dict(update_values[key] or {})
            update_values["updated_at"] = utcnow()
            section = Section.model_validate({**section.model_dump(), **update_values})
        result.append(section)
    if not found:
        return tuple(sections)
    return renumber(result)


def toggle_active(sections: Sequence[Section], section_id: str) -> Sections:
    section = next((item for item in sections if item.id == section_id), None)
    if section is None:
        return tuple(sections)
    return update(sections, section_id, is_active=not section.is_active)


def clear(sections: Sequence[Section]) -> Sections:
    return ()


def apply_bulk(incoming: Iterable[Section | Mapping[str, Any]]) -> Sections:
    """Replace the whole collection, treating every incoming section as a template.

    Ids are regenerated and positions follow the incoming order, so applying
    the same template twice never collides with sections already seen.
    """
    now = utcnow()
    result: list[Section] = []
    for index, item in enumerate(incoming):
        data = item.model_dump() if isinstance(item, Section) else _section_fields(item)
        section_type = str(data.get("type") or SectionType.text.value)
        data.update(
            {
                "id": new_section_id(section_type),
                "type": section_type,
                "position": index,
                "created_at": now,
                "updated_at": now,
            }
        )
        result.append(Section.model_validate(data))
    return renumber(result)


def _section_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in raw.items() if key not in {"_id", "createdAt", "updatedAt"}}
    for key in ("title", "subtitle", "content"):
        if data.get(key) is None:
            data.pop(key, None)
    for key in ("config", "styles"):
        if not isinstance(data.get(key), Mapping):
            data.pop(key, None)
    if data.get("isActive") is None and data.get("is_active") is None:
        data.pop("isActive", None)
        data.pop("is_active", None)
    return data


def has_unique_ids(sections: Sequence[Section]) -> bool:
    return len({section.id for section in sections}) == len(sections)


def is_dense(sections: Sequence[Section]) -> bool:
    return all(section.position == index for index, section in enumerate(sections))


__all__ = [
    "EDITABLE_FIELDS",
    "add",
    "apply_bulk",
    "clear",
    "duplicate",
    "has_unique_ids",
    "is_dense",
    "move_down",
    "move_up",
    "remove",
    "renumber",
    "reorder",
    "toggle_active",
    "update",
]
