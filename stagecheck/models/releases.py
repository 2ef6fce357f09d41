"""Structured access to the release names listed in a staging repository description."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

# Group 1: "Apache Sling" prefix (optional)
# Group 2: component
# Group 3: version
# Group 4: RC marker (optional)
_RELEASE_PATTERN = re.compile(
    r"^[ \t]*(Apache Sling[ \t]*)?([()a-zA-Z0-9\-. \t]+)[ \t]([0-9\-.]+)"
    r"[ \t]?(RC[0-9.]*)?[ \t]*$"
)


class Release(BaseModel):
    """One release named in a repository description.

    Examples
    --------
    >>> r = Release.from_description("Apache Sling Foo 1.0.2")[0]
    >>> (r.full_name, r.name, r.component, r.version)
    ('Apache Sling Foo 1.0.2', 'Foo 1.0.2', 'Foo', '1.0.2')
    """

    model_config = ConfigDict(frozen=True)

    full_name: str
    name: str
    component: str
    version: str

    @classmethod
    def from_description(cls, description: str) -> list[Release]:
        """Parse every comma-separated release name in *description*.

        Raises
        ------
        ValueError
            If no item in the description looks like a release name.
        """
        releases: list[Release] = []
        for item in description.split(","):
            match = _RELEASE_PATTERN.match(item)
            if match is None:
                continue
            component = match.group(2).strip()
            version = match.group(3)
            name = f"{component} {version}"
            prefix = match.group(1)
            full_name = f"{prefix.strip()} {name}" if prefix else name
            releases.append(
                cls(full_name=full_name, name=name, component=component, version=version)
            )

        if not releases:
            raise ValueError(f"No releases found in '{description}'")
        return releases

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Release):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.full_name
