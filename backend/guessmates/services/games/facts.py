"""Country content for rounds.

The engine only ever asks for "a playable country": a name plus an ordered
list of at least two facts (one shown at round start, the rest as hints).
"""

import json
import logging
import os
import random
from typing import Dict, List, Optional

from .models import CountryData

logger = logging.getLogger(__name__)

MIN_FACTS = 2
DEFAULT_DATA_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), '..', '..', 'data', 'countries.json')
)


class NoPlayableCountry(LookupError):
    """Raised when the provider cannot produce a country with enough facts."""


class FactProvider:
    def random_country(self) -> CountryData:
        raise NotImplementedError


def generate_facts(info: Dict) -> List[str]:
    """Build the hint list for one country record, most telling fact first."""
    facts = []
    if info.get('capital'):
        facts.append(f"Its capital city is {info['capital']}.")
    continent = info.get('continent')
    if continent and continent != 'N/A':
        facts.append(f'It is located in the continent of {continent}.')
    languages = info.get('languages') or []
    if languages:
        facts.append(f'One of its official languages is {languages[0]}.')
    if info.get('population'):
        facts.append(
            f"It has a population of approximately {info['population'] / 1_000_000:.1f} million people."
        )
    if info.get('area'):
        facts.append(
            f"Its total surface area is about {info['area'] / 1_000_000:.1f} million square kilometers."
        )
    # de-duplicate, keep order
    return [f for f in dict.fromkeys(facts) if f]


class CountryFactProvider(FactProvider):
    """Picks a random country from a list of country records."""

    def __init__(self, countries: List[Dict], rng: Optional[random.Random] = None, max_attempts: int = 25):
        self._countries = {c['country']: c for c in countries if c.get('country')}
        self._rng = rng or random.Random()
        self._max_attempts = max_attempts

    @classmethod
    def from_json(cls, path: Optional[str] = None, **kwargs) -> 'CountryFactProvider':
        path = path or DEFAULT_DATA_PATH
        with open(path, encoding='utf-8') as fh:
            countries = json.load(fh)
        logger.info(f"[facts-load] path={path} countries={len(countries)}")
        return cls(countries, **kwargs)

    def candidates(self) -> List[str]:
        # capital and continent are needed for the first two hints
        return [
            name for name, info in self._countries.items()
            if info.get('capital') and info.get('continent')
        ]

    def facts_for(self, name: str) -> List[str]:
        info = self._countries.get(name)
        if not info:
            logger.warning(f"[facts-missing] country={name}")
            return []
        return generate_facts(info)

    def random_country(self) -> CountryData:
        names = self.candidates()
        if not names:
            raise NoPlayableCountry('No suitable countries to pick from.')
        for _ in range(self._max_attempts):
            name = self._rng.choice(names)
            facts = self.facts_for(name)
            if len(facts) >= MIN_FACTS:
                return CountryData(name=name, facts=facts)
            logger.warning(f"[facts-short] country={name} facts={len(facts)}; trying another")
        raise NoPlayableCountry(f'No country with at least {MIN_FACTS} facts after {self._max_attempts} picks.')
