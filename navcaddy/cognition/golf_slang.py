"""Lookup tables for utterance normalization.

Keys are lowercase with single spaces; matching is case-insensitive and treats
any run of whitespace as one space.
"""

from __future__ import annotations

CLUB_ABBREVIATIONS: dict[str, str] = {
    **{f"{n}i": f"{n}-iron" for n in range(2, 10)},
    **{f"{n}w": f"{n}-wood" for n in (3, 5, 7)},
    **{f"{n}h": f"{n}-hybrid" for n in range(2, 6)},
    "pw": "pitching wedge",
    "gw": "gap wedge",
    "aw": "approach wedge",
    "sw": "sand wedge",
    "lw": "lob wedge",
    "d": "driver",
}

COMMON_TERMS: dict[str, str] = {
    "stick": "club",
    "sticks": "clubs",
    "big stick": "driver",
    "big dog": "driver",
    "the big dog": "driver",
    "flat stick": "putter",
    "dance floor": "green",
    "putting surface": "green",
    "tin cup": "hole",
    "fairway metal": "fairway wood",
    "lumber": "wood",
}

_UNITS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
}

_TEENS = {
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
}

_TENS = {
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
}

SINGLE_NUMBERS: dict[str, str] = {
    word: str(value) for word, value in {**_UNITS, **_TEENS, **_TENS, "hundred": 100}.items()
}


def _build_compound_numbers() -> dict[str, str]:
    table: dict[str, str] = {}
    for tens_word, tens in _TENS.items():
        for unit_word, unit in _UNITS.items():
            table[f"{tens_word} {unit_word}"] = str(tens + unit)
            table[f"{tens_word}-{unit_word}"] = str(tens + unit)
    below_hundred = {**_TEENS, **_TENS}
    for hundreds_word, hundreds in (("one", 100), ("a", 100), ("two", 200), ("three", 300)):
        table[f"{hundreds_word} hundred"] = str(hundreds)
        for rest_word, rest in below_hundred.items():
            table[f"{hundreds_word} hundred {rest_word}"] = str(hundreds + rest)
            table[f"{hundreds_word} hundred and {rest_word}"] = str(hundreds + rest)
        for unit_word, unit in _UNITS.items():
            table[f"{hundreds_word} hundred and {unit_word}"] = str(hundreds + unit)
        for tens_word, tens in _TENS.items():
            for unit_word, unit in _UNITS.items():
                table[f"{hundreds_word} hundred {tens_word} {unit_word}"] = str(hundreds + tens + unit)
    # Golfer shorthand: "one fifty" is 150, "two ten" is 210, "one twenty five" is 125.
    for hundreds_word, hundreds in (("one", 100), ("two", 200)):
        for rest_word, rest in below_hundred.items():
            table[f"{hundreds_word} {rest_word}"] = str(hundreds + rest)
        for tens_word, tens in _TENS.items():
            for unit_word, unit in _UNITS.items():
                table[f"{hundreds_word} {tens_word} {unit_word}"] = str(hundreds + tens + unit)
                table[f"{hundreds_word} {tens_word}-{unit_word}"] = str(hundreds + tens + unit)
    for unit_word, unit in _UNITS.items():
        if unit >= 2:
            table[f"{unit_word} iron"] = f"{unit}-iron"
            table[f"{unit_word} hybrid"] = f"{unit}-hybrid"
    for unit_word in ("three", "five", "seven"):
        table[f"{unit_word} wood"] = f"{_UNITS[unit_word]}-wood"
    return table


COMPOUND_NUMBERS: dict[str, str] = _build_compound_numbers()

PROFANITY: frozenset[str] = frozenset(
    {
        "fuck",
        "fucking",
        "fucked",
        "shit",
        "shitty",
        "damn",
        "damnit",
        "hell",
        "ass",
        "asshole",
        "bitch",
        "crap",
        "piss",
        "bastard",
        "dick",
    }
)
