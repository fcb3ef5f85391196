"""Case-insensitive multimap for headers and query strings."""

from collections.abc import Iterable, Mapping


class MultiMap:
    """Name -> values lookup where names compare case-insensitively.

    Accepts a mapping of name to a single value or a list of values, or an
    iterable of (name, value) pairs (werkzeug's ``items(multi=True)``). The
    first spelling seen for a name is kept for reporting.
    """

    def __init__(self, data: Mapping | Iterable[tuple[str, str]] | None = None):
        self._values: dict[str, list[str]] = {}
        self._names: dict[str, str] = {}

        if data is None:
            return
        pairs = data.items() if isinstance(data, Mapping) else data
        for name, value in pairs:
            if isinstance(value, (list, tuple)):
                for v in value:
                    self.add(name, v)
            else:
                self.add(name, value)

    def add(self, name: str, value) -> None:
        key = name.lower()
        self._names.setdefault(key, name)
        self._values.setdefault(key, [])
        if value is not None:
            self._values[key].append(str(value))

    def first(self, name: str) -> str | None:
        values = self._values.get(name.lower())
        return values[0] if values else None

    def get_all(self, name: str) -> list[str]:
        return list(self._values.get(name.lower(), []))

    def names(self) -> list[str]:
        return list(self._names.values())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self.names())

    def __repr__(self) -> str:
        items = {self._names[k]: v for k, v in self._values.items()}
        return f"MultiMap({items!r})"


def as_multimap(data) -> MultiMap | None:
    """Wrap caller input in a MultiMap, keeping ``None`` as "not supplied"."""
    if data is None or isinstance(data, MultiMap):
        return data
    return MultiMap(data)
