from __future__ import annotations
import re
from typing import Optional

from .comment_store import MAX_NAME, MAX_TEXT

# static word list; bracketed letters also catch "*" and doubled-letter spellings
_WORDS = (
    "f[u*kv]ck", "sh[i*tt]t", "b[i*t]tch", "a[s*z]s", "d[a*m]mn", "h[e*l]ll",
    "cr[a*]p", "p[u*]ssy", "d[i*]ck", "c[u*]nt", "f[a*]g", "n[i*]gg[e*]r", "wh[o*]re",
    "sl[u*]t", "bastard", "jackass", "dumbass", "retard", "idiot", "stupid", "piss",
    "bloody", "crap", "damn", "goddamn", "motherfucker", "bollocks", "bugger",
    "tosser", "wanker", "slag", "prick", "twat", "numbnut", "skank", "clit", "nonce",
    "shag", "minger", "clunge", "punter", "knob", "bellend", "jizz", "cum", "semen",
    "vagina", "penis", "porn", "sex", "xxx", "boobs", "tits", "nipple", "asshole",
    "faggot", "kike", "spic", "chink", "wog", "darkie", "paki", "coon", "honky",
    "gook", "dyke", "tranny", "homo", "biatch", "muff", "cooter", "rectum", "anus",
    "fart", "turd", "testicle", "scrotum", "cock", "balls", "ejaculate", "masturbate",
    "orgasm", "erotic", "hardcore", "pedophile", "pedobear", "bestiality", "rape",
    "incest", "nazi", "hitler", "holocaust", "terrorist", "jihad", "suicide", "kill",
    "death", "murder", "cocaine", "heroin", "meth", "weed", "marijuana", "stoned",
    "drunk", "alcoholic", "moron", "imbecile", "loser", "failure", "suck", "hate",
    "ugly", "fat", "gross", "disgusting",
)
_PROFANITY = re.compile(r"\b(" + "|".join(_WORDS) + r")\b", re.IGNORECASE)


class CommentRejected(ValueError):
    pass


def contains_profanity(text: str) -> bool:
    return bool(_PROFANITY.search(text or ""))


def validate_comment(name: Optional[str], text: Optional[str]) -> None:
    """Raise CommentRejected with a user-facing message if the comment can't be posted."""
    if not name or not text or not name.strip() or not text.strip():
        raise CommentRejected("Name and text are required")
    if len(name) > MAX_NAME:
        raise CommentRejected(f"Name must be {MAX_NAME} characters or less")
    if len(text) > MAX_TEXT:
        raise CommentRejected(f"Comment must be {MAX_TEXT} characters or less")
    if contains_profanity(name) or contains_profanity(text):
        raise CommentRejected("Please keep comments respectful")
