"""Core domain models for bibliography entries."""

# Exceptions
from bibforge.core.exceptions import (
    BibError,
    BibliographyParseError,
    ConfigError,
    DanglingCrossrefError,
    DuplicateKeyError,
    InvalidKindError,
    MalformedEntryError,
    NotFoundError,
    ParseError,
    UnresolvedEntryError,
    UnresolvedVariableError,
)

# Kinds and schemas
from bibforge.core.kinds import (
    REQUIRED_FIELDS,
    CustomKind,
    EntryKind,
    Kind,
    parse_kind,
    required_fields,
)

# Models
from bibforge.core.models import (
    Biblio,
    Entry,
    MissingRequiredFields,
)

# Resolution
from bibforge.core.resolver import (
    Resolver,
    Supplier,
    defaults_supplier,
)

# Values
from bibforge.core.values import (
    DateParts,
    FieldValue,
)

__all__ = [
    "BibError",
    "BibliographyParseError",
    "Biblio",
    "ConfigError",
    "CustomKind",
    "DanglingCrossrefError",
    "DateParts",
    "DuplicateKeyError",
    "Entry",
    "EntryKind",
    "FieldValue",
    "InvalidKindError",
    "Kind",
    "MalformedEntryError",
    "MissingRequiredFields",
    "NotFoundError",
    "ParseError",
    "REQUIRED_FIELDS",
    "Resolver",
    "Supplier",
    "UnresolvedEntryError",
    "UnresolvedVariableError",
    "defaults_supplier",
    "parse_kind",
    "required_fields",
]
