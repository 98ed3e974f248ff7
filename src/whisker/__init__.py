"""
Whisker
=======

Mustache-style templating with a central token cache and pluggable pragmas.

    from whisker import Whisker

    engine = Whisker().add_template_path("templates")
    engine.render("page", {"title": "Hello"})
    engine.render("Hello {{name}}!", {"name": "world"})
"""

from whisker.config import EngineConfig
from whisker.context import ContextStack
from whisker.engine import Compiled, Raw, Whisker, is_literal
from whisker.errors import (
    InvalidPartialsError,
    InvalidPragmaNameError,
    InvalidSubViewArgumentError,
    InvalidTemplateReferenceError,
    SnapshotError,
    TemplateNotFoundError,
    TemplateRecursionError,
    TemplateSyntaxError,
    UnbalancedTagError,
    WhiskerError,
)
from whisker.lexer import Lexer
from whisker.pragma import ImplicitIterator, Pragma, PragmaStack, SubView, SubViews
from whisker.renderer import RenderContext, Renderer
from whisker.resolver import FileSystemResolver, Resolver
from whisker.tokens import Token, TokenKind, TokenSequence

__all__ = [
    "EngineConfig",
    "ContextStack",
    "Compiled",
    "Raw",
    "Whisker",
    "is_literal",
    "InvalidPartialsError",
    "InvalidPragmaNameError",
    "InvalidSubViewArgumentError",
    "InvalidTemplateReferenceError",
    "SnapshotError",
    "TemplateNotFoundError",
    "TemplateRecursionError",
    "TemplateSyntaxError",
    "UnbalancedTagError",
    "WhiskerError",
    "Lexer",
    "ImplicitIterator",
    "Pragma",
    "PragmaStack",
    "SubView",
    "SubViews",
    "RenderContext",
    "Renderer",
    "FileSystemResolver",
    "Resolver",
    "Token",
    "TokenKind",
    "TokenSequence",
]

__version__ = "0.1.0"
