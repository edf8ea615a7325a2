from __future__ import annotations

from dataclasses import dataclass, field

from .cli_shared import ValidationError


@dataclass
class ListOptions:
    page: dict[str, str] = field(default_factory=dict)
    filter: dict[str, str] = field(default_factory=dict)
    sort: str = ""
    include: str = ""
    fields: dict[str, str] = field(default_factory=dict)


def build_list_query(options: ListOptions | None) -> list[tuple[str, str]]:
    """Flatten list options into ordered JSON:API query parameters."""
    if options is None:
        return []
    out: list[tuple[str, str]] = []
    for k, v in options.page.items():
        out.append((f"page[{k}]", str(v)))
    for k, v in options.filter.items():
        out.append((f"filter[{k}]", str(v)))
    if options.sort:
        out.append(("sort", options.sort))
    if options.include:
        out.append(("include", options.include))
    for k, v in options.fields.items():
        out.append((f"fields[{k}]", str(v)))
    return out


def _split_pairs(raw: str, *, sep: str, label: str, example: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for part in raw.split(sep):
        item = part.strip()
        if not item:
            continue
        key, colon, value = item.partition(":")
        key = key.strip()
        if not colon or not key:
            raise ValidationError(f"invalid {label} entry {item!r} (expected {example})")
        out[key] = value.strip()
    return out


def parse_filter_arg(raw: str | None) -> dict[str, str]:
    """Parse ``key1:value1,key2:value2``; values may contain further colons."""
    if not raw:
        return {}
    return _split_pairs(raw, sep=",", label="--filter", example="key:value[,key:value...]")


def parse_fields_arg(raw: str | None) -> dict[str, str]:
    """Parse ``type1:f1,f2;type2:f3`` into a sparse fieldset mapping."""
    if not raw:
        return {}
    groups = _split_pairs(raw, sep=";", label="--fields", example="type:field1,field2[;type:field...]")
    return {k: ",".join(f.strip() for f in v.split(",") if f.strip()) for k, v in groups.items()}


def list_options_from_flags(
    *,
    page_number: str | None = None,
    page_size: str | None = None,
    filters: str | None = None,
    sort: str | None = None,
    include: str | None = None,
    fields: str | None = None,
) -> ListOptions:
    page: dict[str, str] = {}
    if str(page_number or "").strip():
        page["number"] = str(page_number).strip()
    if str(page_size or "").strip():
        page["size"] = str(page_size).strip()
    return ListOptions(
        page=page,
        filter=parse_filter_arg(filters),
        sort=str(sort or "").strip(),
        include=str(include or "").strip(),
        fields=parse_fields_arg(fields),
    )
