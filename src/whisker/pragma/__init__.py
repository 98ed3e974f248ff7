from whisker.pragma.base import PRAGMA_NAME_RE, Pragma, PragmaStack, validate_pragma_name
from whisker.pragma.implicit_iterator import ImplicitIterator
from whisker.pragma.sub_views import SubView, SubViews

__all__ = [
    "PRAGMA_NAME_RE",
    "Pragma",
    "PragmaStack",
    "validate_pragma_name",
    "ImplicitIterator",
    "SubView",
    "SubViews",
]
