"""Message catalogues with nested keys, a selected and a fallback language."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

TextTree = Union[str, dict[str, "TextTree"]]


def _query(node: TextTree, steps: list[str]) -> str | None:
    """Walk ``node`` along ``steps``, consuming them as it goes."""
    if isinstance(node, str):
        return node
    if not steps:
        return None

    current_path = ".".join(steps)
    deep = node.get(steps.pop(0))
    if deep is None:
        return None
    found = _query(deep, steps)

    # Fall back to treating the whole remaining path as a single key.
    if found is None and current_path in node:
        return _query(node[current_path], steps)
    return found


def _validate_tree(node: Any) -> TextTree:
    if isinstance(node, str):
        return node
    if isinstance(node, dict):
        return {str(key): _validate_tree(value) for key, value in node.items()}
    raise ValueError(f"text entries must be strings or objects, got {type(node).__name__}")


@dataclass
class Language:
    """A language identifier together with its tree of texts."""

    id: str = "und"
    texts: TextTree = field(default_factory=dict)

    def get_text(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        """Look up a dotted ``path`` and fill in ``{name}`` placeholders.

        A missing text yields an empty string. Each placeholder is replaced once.
        """
        text = _query(self.texts, path.split("."))
        if text is None:
            text = ""
        for name, value in (params or {}).items():
            text = text.replace(f"{{{name}}}", str(value), 1)
        return text


def parse_language(text: str) -> Language:
    """Build a :class:`Language` from its JSON form; raise ``ValueError`` if malformed."""
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("a language must be a JSON object")
    try:
        language_id = data["id"]
        texts = data["texts"]
    except KeyError as exc:
        raise ValueError(f"missing field {exc.args[0]!r}") from None
    if not isinstance(language_id, str) or not language_id:
        raise ValueError("the language id must be a non-empty string")
    return Language(id=language_id, texts=_validate_tree(texts))


@dataclass
class I18n:
    """Translator over a set of languages."""

    selected_language: str
    fallback_language: str
    languages: list[Language] = field(default_factory=list)

    def _find(self, language_id: str) -> Language | None:
        return next((lang for lang in self.languages if lang.id == language_id), None)

    def translate_with_params(self, id: str, params: Mapping[str, Any]) -> str:
        """Translate ``id`` in the selected language, else the fallback, else return ``id``."""
        for language_id in (self.selected_language, self.fallback_language):
            language = self._find(language_id)
            if language is not None:
                return language.get_text(id, params)
        return id

    def translate(self, id: str) -> str:
        """Translate ``id`` without parameters."""
        return self.translate_with_params(id, {})

    def set_language(self, id: str) -> None:
        """Select the language to translate into."""
        self.selected_language = id


def init_i18n(
    selected_language: str,
    fallback_language: str,
    languages: Callable[[], Iterable[Language]] | Iterable[Language],
) -> I18n:
    """Create a translator; ``languages`` may be a list or a factory returning one."""
    langs = languages() if callable(languages) else languages
    return I18n(selected_language, fallback_language, list(langs))


def translate(i18n: I18n, id: str, **kwargs: Any) -> str:
    """Translate ``id``, filling placeholders from keyword arguments."""
    if kwargs:
        return i18n.translate_with_params(id, {name: str(value) for name, value in kwargs.items()})
    return i18n.translate(id)