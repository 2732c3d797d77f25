"""
The four fixed persona tags.
"""
from enum import Enum


class Persona(str, Enum):
    NON_TECHNICAL = "non_technical"
    TECHNICAL = "technical"
    SOLO_PROJECT = "solo_project"
    ADMIN = "admin"

    @property
    def label(self) -> str:
        """Hyphenated form used in group keys, e.g. ``non-technical``."""
        return self.value.replace("_", "-")

    @property
    def display_label(self) -> str:
        """Label with spaces, title-cased, e.g. ``Non Technical``."""
        return self.label.replace("-", " ").title()


# Declaration order is the iteration order for every persona loop
PERSONAS: tuple[Persona, ...] = tuple(Persona)

# Only these personas get per-project groups
PROJECT_PERSONAS: tuple[Persona, ...] = (
    Persona.NON_TECHNICAL,
    Persona.TECHNICAL,
    Persona.SOLO_PROJECT,
)
