"""
Dice-indexed word lists.

A word list is a text stream where every line is ``<key>\\t<word>``; the key is
the concatenation of one die roll per digit (``11111`` .. ``66666`` for the EFF
large list). Lists with one bare word per line are accepted too and are then
sampled by position.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import httpx

from .exceptions import ConfigError, LookupMiss

logger = logging.getLogger(__name__)

DEFAULT_WORDLIST_URL = "https://www.eff.org/files/2016/07/18/eff_large_wordlist.txt"
DEFAULT_WORDLIST_PATH = Path("eff_large_wordlist.txt")
DIE_FACES = 6


class WordList:
    """Read-only key -> word mapping, safe to share between threads."""

    __slots__ = ("_entries", "_words", "dice_count")

    def __init__(self, entries: Dict[str, str], words: Tuple[str, ...], dice_count: Optional[int]) -> None:
        self._entries = entries
        self._words = words
        self.dice_count = dice_count

    @classmethod
    def from_entries(cls, entries: Dict[str, str]) -> "WordList":
        widths = {len(key) for key in entries}
        if len(widths) > 1:
            raise ConfigError("Las claves de la lista de palabras tienen longitudes distintas.")
        dice_count = widths.pop() if widths else None
        return cls(dict(entries), tuple(entries.values()), dice_count)

    @classmethod
    def from_words(cls, words: Iterable[str]) -> "WordList":
        return cls({}, tuple(words), None)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def indexed(self) -> bool:
        return self.dice_count is not None

    @property
    def words(self) -> Tuple[str, ...]:
        return self._words

    def lookup(self, key: str) -> str:
        try:
            return self._entries[key]
        except KeyError:
            raise LookupMiss(key) from None

    def word_at(self, position: int) -> str:
        return self._words[position]

    def is_complete(self) -> bool:
        if self.dice_count is None:
            return True
        return len(self._entries) == DIE_FACES ** self.dice_count


def parse_wordlist(lines: Iterable[str]) -> WordList:
    entries: Dict[str, str] = {}
    bare_words: List[str] = []

    for lineno, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        if len(parts) == 2:
            key, word = parts[0], parts[1].strip()
            if not key.isdigit():
                raise ConfigError(f"Linea {lineno} malformada en la lista de palabras: {line!r}")
            if key in entries:
                raise ConfigError(f"Clave duplicada {key} en la linea {lineno}.")
            entries[key] = word
        elif parts[0].isdigit():
            raise ConfigError(f"Linea {lineno} sin palabra asociada a la clave {parts[0]}.")
        else:
            bare_words.append(parts[0])

    if entries and bare_words:
        raise ConfigError("La lista mezcla lineas con clave y palabras sueltas.")
    if entries:
        return WordList.from_entries(entries)
    return WordList.from_words(bare_words)


def load_wordlist(path: Path) -> WordList:
    if not path.exists():
        raise ConfigError(f"No existe la lista de palabras: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"No se pudo leer la lista de palabras {path}: {exc}") from exc

    wordlist = parse_wordlist(text.splitlines())
    if not len(wordlist):
        raise ConfigError(f"La lista de palabras esta vacia: {path}")
    if not wordlist.is_complete():
        logger.warning(
            "La lista %s no cubre todas las claves de %d dados (%d de %d).",
            path,
            wordlist.dice_count,
            len(wordlist),
            DIE_FACES ** wordlist.dice_count,
        )
    logger.debug("Lista de palabras cargada: %s (%d entradas).", path, len(wordlist))
    return wordlist


def fetch_wordlist(url: str, destination: Path, timeout: float = 30.0) -> Path:
    logger.info("Descargando lista de palabras desde %s", url)
    try:
        with httpx.Client(timeout=timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ConfigError(f"No se pudo descargar la lista de palabras: {exc}") from exc

    text = response.text
    if not len(parse_wordlist(text.splitlines())):
        raise ConfigError(f"La descarga de {url} no contiene palabras.")

    destination.parent.mkdir(parents=True, exist_ok=True)
    partial = destination.with_name(destination.name + ".part")
    partial.write_text(text, encoding="utf-8")
    partial.replace(destination)
    logger.info("Lista de palabras guardada en %s", destination)
    return destination
