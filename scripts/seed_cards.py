#!/usr/bin/env python3
"""Seed a profile with a starter Spanish deck.

Usage:
    python scripts/seed_cards.py --profile maria
    FLASHDRILL_STORAGE=postgres python scripts/seed_cards.py --profile maria --reverse
"""

import argparse
import logging
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from drill.models import Card, CardSettings, CardType, Meaning, Word
from server.file_storage import FileStorage
from server.postgres_storage import PostgresStorage

logger = logging.getLogger(__name__)


def get_seed_data_es():
    """Spanish vocabulary by category.

    {category: {name: str, items: {spanish_word: english_alternatives}}}
    """
    return {
        'month': {
            'name': 'Month',
            'items': {
                'enero': 'january',
                'febrero': 'february',
                'marzo': 'march',
                'abril': 'april',
                'mayo': 'may',
                'junio': 'june',
                'julio': 'july',
                'agosto': 'august',
                'septiembre': 'september',
                'octubre': 'october',
                'noviembre': 'november',
                'diciembre': 'december'
            }
        },
        'season': {
            'name': 'Season',
            'items': {
                'primavera': 'spring',
                'verano': 'summer',
                'otoño': 'autumn,fall',
                'invierno': 'winter'
            }
        },
        'day': {
            'name': 'Day of Week',
            'items': {
                'lunes': 'monday',
                'martes': 'tuesday',
                'miércoles': 'wednesday',
                'jueves': 'thursday',
                'viernes': 'friday',
                'sábado': 'saturday',
                'domingo': 'sunday'
            }
        },
        'food': {
            'name': 'Food',
            'items': {
                'pan': 'bread',
                'leche': 'milk',
                'agua': 'water',
                'carne': 'meat',
                'pollo': 'chicken',
                'arroz': 'rice',
                'huevo': 'egg',
                'queso': 'cheese',
                'manzana': 'apple',
                'naranja': 'orange'
            }
        },
        'clothing': {
            'name': 'Clothing',
            'items': {
                'camisa': 'shirt',
                'pantalones': 'pants,trousers',
                'zapato': 'shoe',
                'vestido': 'dress',
                'chaqueta': 'jacket',
                'sombrero': 'hat'
            }
        }
    }


def build_cards(data: dict, card_type: CardType = CardType.STRAIGHT) -> list[Card]:
    """Turn category data into cards, one per word, in category order."""
    cards = []
    created_at = int(time.time())
    for category in data.values():
        for word, alternatives in category['items'].items():
            translations = [alt.strip() for alt in alternatives.split(',')]
            meaning = Meaning(
                definition=f"{category['name']}: {translations[0]}",
                translated_definition=category['name'],
                word_translations=translations
            )
            cards.append(Card(Word(word), [meaning], card_type=card_type, created_at=created_at))
            # Distinct timestamps keep the deck in this order
            created_at += 1
    return cards


def main():
    parser = argparse.ArgumentParser(description='Seed a flashdrill profile with Spanish vocabulary')
    parser.add_argument('--profile', default='default', help='Profile name (default: default)')
    parser.add_argument('--reverse', action='store_true', help='Create reverse cards (meaning -> word)')
    parser.add_argument('--cards-per-set', type=int, help='Also save this cards_per_set setting')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    if os.environ.get('FLASHDRILL_STORAGE', 'file') == 'postgres':
        storage = PostgresStorage()
    else:
        storage = FileStorage(os.environ.get('FLASHDRILL_STATE_DIR'))

    card_type = CardType.REVERSE if args.reverse else CardType.STRAIGHT
    existing = {card.word_name for card in storage.load_pool(args.profile)}
    cards = [c for c in build_cards(get_seed_data_es(), card_type) if c.word_name not in existing]
    if cards:
        storage.save_cards(args.profile, cards)
    logger.info(f"Added {len(cards)} cards to '{args.profile}' ({len(existing)} already present)")

    if args.cards_per_set is not None:
        settings = storage.load(args.profile)
        settings = CardSettings(args.cards_per_set, settings.test_answer_method, settings.streak_length)
        storage.save(args.profile, settings)


if __name__ == '__main__':
    main()
