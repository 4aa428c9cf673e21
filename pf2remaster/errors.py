"""Exceptions raised while loading, patching and registering content."""


class RemasterError(Exception):
    """Base class for every error raised by pf2remaster."""


class AttrSyntaxError(RemasterError, ValueError):
    """An attribute string does not follow the Key=value grammar."""


class PatchError(RemasterError):
    """A patch declaration is malformed or names an unknown field."""


class NoOpPatchError(PatchError):
    """A patch changed nothing in strict mode."""

    def __init__(self, drift):
        super().__init__(str(drift))
        self.drift = drift


class SweepError(RemasterError):
    """A non-idempotent sweep was applied to a table a second time."""


class CatalogError(RemasterError):
    """A catalog data file cannot be used."""


class MissingSourceError(CatalogError, KeyError):
    """A derived entry names a legacy entry that does not exist."""

    def __str__(self):
        return Exception.__str__(self)


class UnknownChoiceTypeError(RemasterError, LookupError):
    """A choice type outside the closed set of content kinds."""
