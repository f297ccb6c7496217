from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional, Set

logger = logging.getLogger(__name__)

# Small built-in list for development; production points DICTIONARY_PATH at a full word list.
DEFAULT_WORDS = {
    'AA','AB','AD','AE','AG','AH','AI','AL','AM','AN','AR','AS','AT','AW','AX','AY',
    'BA','BE','BI','BO','BY','DA','DE','DO','ED','EF','EH','EL','EM','EN','ER','ES','EX',
    'FA','FE','GO','HA','HE','HI','HM','HO','ID','IF','IN','IS','IT','JO','KA','KI',
    'LA','LI','LO','MA','ME','MI','MO','MU','MY','NA','NE','NO','NU','OD','OE','OF',
    'OH','OI','OM','ON','OP','OR','OS','OW','OX','OY','PA','PE','PI','QI','RE','SH',
    'SI','SO','TA','TI','TO','UH','UM','UN','UP','US','UT','WE','WO','XI','XU','YA',
    'YE','YO','ZA',
    'ACE','ACT','AND','ANT','ARE','ART','ATE','BAT','BED','BEE','CAB','CAR','CAT','COT',
    'DOG','EAR','EAT','FAN','HAT','HEN','ICE','INK','JAR','KEY','MAP','NET','OAR','OAT',
    'PAN','PEN','RAT','RED','SAT','SEA','SET','SIT','SUN','TAN','TAR','TEA','TEN','TOE',
    'ZOO','CATS','DOGS','BOARD','GAME','PLAY','QUIZ','RACK','TILE','TILES','WORD','WORDS',
}


class DictionaryService:
    """Word-membership oracle. Words are compared upper-cased."""

    def __init__(self, words: Optional[Iterable[str]] = None):
        self._words: Set[str] = {w.strip().upper() for w in (DEFAULT_WORDS if words is None else words) if w.strip()}

    @classmethod
    def from_file(cls, path: str) -> 'DictionaryService':
        text = Path(path).read_text(encoding='utf-8')
        service = cls(text.split())
        logger.info("Loaded %d words from %s", len(service), path)
        return service

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: str) -> bool:
        return self.is_valid(word)

    def is_valid(self, word: str) -> bool:
        if not word:
            return False
        return word.upper() in self._words


def load_dictionary(path: Optional[str] = None) -> DictionaryService:
    if path:
        return DictionaryService.from_file(path)
    return DictionaryService()
