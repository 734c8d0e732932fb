"""Quote rotation - hands out each motivational quote once per cycle."""
import logging
import random
from typing import FrozenSet, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

QUOTES: Tuple[str, ...] = (
    "The secret of getting ahead is getting started.",
    "Small steps every day add up to big results.",
    "Be present. The best moments happen off-screen.",
    "Discipline is choosing what you want most over what you want now.",
    "Your time is limited, don't waste it scrolling.",
    "Focus on the step in front of you, not the whole staircase.",
    "You don't have to be great to start, but you have to start to be great.",
    "Look up. Life is happening around you.",
)


class QuoteRotator:
    """Picks quotes at random without replacement until the corpus runs out."""
    
    def __init__(self, corpus: Iterable[str] = QUOTES, rng: Optional[random.Random] = None):
        self.corpus: Tuple[str, ...] = tuple(corpus)
        if not self.corpus:
            raise ValueError("Quote corpus must not be empty")
        self._rng = rng or random.Random()
    
    def next_quote(self, used: FrozenSet[str]) -> Tuple[str, FrozenSet[str]]:
        """Pick an unused quote.
        
        Args:
            used: Quotes already sent in the current cycle
            
        Returns:
            Tuple of (quote, updated used set). The used set starts over once
            every quote has been sent, so the pick right after a reset may
            repeat the previous one.
        """
        # Ignore anything that isn't part of the corpus
        used = frozenset(q for q in used if q in self.corpus)
        available = [q for q in self.corpus if q not in used]
        
        if not available:
            logger.debug("Quote cycle exhausted, starting a new one")
            used = frozenset()
            available = list(self.corpus)
        
        quote = self._rng.choice(available)
        used = used | {quote}

        # A complete cycle is stored as empty
        if len(used) == len(set(self.corpus)):
            used = frozenset()
        return quote, used
