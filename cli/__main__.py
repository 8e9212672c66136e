"""Entry point for flashdrill CLI client."""

import argparse
import sys

from cli.api_client import FlashdrillAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='flashdrill - vocabulary flashcard drills')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--profile',
        default='default',
        help='Profile name (default: default)'
    )
    parser.add_argument(
        '--repeat',
        action='store_true',
        help='Repeat already learned cards instead of learning new ones'
    )
    args = parser.parse_args()

    client = FlashdrillAPIClient(base_url=args.server, profile=args.profile)
    ui = ConsoleUI(client, repeat=args.repeat)

    try:
        ui.run()
    except KeyboardInterrupt:
        print()
        try:
            ui.abandon()
        except Exception as e:
            print(f"Error abandoning session: {e}")
        print('Goodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
