from __future__ import annotations

import logging
import math
import secrets
from random import Random
from typing import List, Optional

from .config import PassphraseConfig
from .wordlist import DIE_FACES, WordList

logger = logging.getLogger(__name__)


def roll_key(dice: int, rng: Random) -> str:
    """Concatenate ``dice`` independent rolls of a six-sided die."""
    return "".join(str(rng.randint(1, DIE_FACES)) for _ in range(dice))


def capitalize_word(word: str) -> str:
    if not word:
        return word
    return word[0].upper() + word[1:]


def estimate_entropy(wordlist_size: int, config: PassphraseConfig) -> float:
    if wordlist_size < 1:
        return 0.0
    bits = config.word_count * math.log2(wordlist_size)
    if config.add_number:
        bits += math.log2(config.word_count * 10)
    return bits


class PassphraseGenerator:
    def __init__(self, wordlist: WordList, config: PassphraseConfig, rng: Optional[Random] = None) -> None:
        self.wordlist = wordlist
        self.config = config
        self.rng = rng if rng is not None else secrets.SystemRandom()

    def draw_word(self) -> str:
        if self.wordlist.indexed:
            key = roll_key(self.wordlist.dice_count, self.rng)
            return self.wordlist.lookup(key)
        return self.wordlist.word_at(self.rng.randrange(len(self.wordlist)))

    def generate(self) -> str:
        words: List[str] = [self.draw_word() for _ in range(self.config.word_count)]

        if self.config.add_number:
            position = self.rng.randrange(len(words))
            words[position] = f"{words[position]}{self.rng.randint(0, 9)}"

        if self.config.add_capital:
            words = [capitalize_word(word) for word in words]

        return self.config.separator.join(words)


def generate_passphrase(wordlist: WordList, config: PassphraseConfig, rng: Optional[Random] = None) -> str:
    return PassphraseGenerator(wordlist, config, rng).generate()
