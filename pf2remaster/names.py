"""Random character names built from ancestry-flavored syllables."""
import random
from typing import Optional

CLUSTERS = {
    'B': 'lr', 'C': 'hlr', 'D': 'r', 'F': 'lr', 'G': 'lnr', 'K': 'lnr', 'P': 'lr', 'S': 'chklt', 'T': 'hr',
    'W': 'h',
    'c': 'hkt', 'l': 'cfkmnptv', 'm': 'p', 'n': 'cgkt', 'r': 'fv', 's': 'kpt', 't': 'h',
}
CONSONANTS = {
    'Dwarf': 'dgkmnprst',
    'Elf': 'fhlmnpqswy',
    'Gnome': 'bdghjlmnprstw',
    'Goblin': 'bdfghklmnprtwyz',
    'Halfling': 'bdfghlmnprst',
    'Human': 'bcdfghjklmnprstvwz',
}
VOWELS = {
    'Dwarf': 'aeiou',
    'Elf': 'aeioy',
    'Gnome': 'aeiou',
    'Goblin': 'aeiou',
    'Halfling': 'aeiou',
    'Human': 'aeiou',
}
DIPHTHONGS = {'a': 'wy', 'e': 'aei', 'o': 'aiouy', 'u': 'ae'}
# Consonants that never end a syllable
LEADING = 'ghjqvwy'


def _palette(ancestry: Optional[str]) -> str:
    if ancestry:
        for known in ('Dwarf', 'Elf', 'Gnome', 'Goblin', 'Halfling'):
            if known in ancestry:
                return known
    return 'Human'


def _syllable_count(roll: int) -> int:
    if roll < 50:
        return 2
    if roll < 75:
        return 3
    if roll < 90:
        return 4
    if roll < 95:
        return 5
    if roll < 99:
        return 6
    return 7


def random_name(ancestry: Optional[str] = None, rng: Optional[random.Random] = None) -> str:
    """Return a random name; any ancestry containing "Elf" sounds elven, etc."""
    rng = rng or random.Random()
    palette = _palette(ancestry)
    consonants = CONSONANTS[palette]
    vowels = VOWELS[palette]

    def percent() -> int:
        return rng.randint(0, 99)

    result = ''
    end_consonant = ''
    for _ in range(_syllable_count(percent())):
        if percent() <= 80:
            end_consonant = rng.choice(consonants).upper()
            if end_consonant in CLUSTERS and percent() < 15:
                end_consonant += rng.choice(CLUSTERS[end_consonant])
            result += end_consonant
            if end_consonant == 'Q':
                result += 'u'
        elif len(end_consonant) == 1 and percent() < 10:
            result += end_consonant
            end_consonant += end_consonant
        vowel = rng.choice(vowels)
        if end_consonant and vowel in DIPHTHONGS and percent() < 15:
            vowel += rng.choice(DIPHTHONGS[vowel])
        result += vowel
        end_consonant = ''
        if percent() <= 60:
            end_consonant = rng.choice(consonants)
            while end_consonant in LEADING:
                end_consonant = rng.choice(consonants)
            if end_consonant in CLUSTERS and percent() < 15:
                end_consonant += rng.choice(CLUSTERS[end_consonant])
            result += end_consonant
    return result[:1].upper() + result[1:].lower()
