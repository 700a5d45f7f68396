"""Entry point for nihongo CLI client."""

import argparse
import sys

from cli.api_client import NihongoAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='Nihongo - Japanese vocabulary drill')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    args = parser.parse_args()

    client = NihongoAPIClient(base_url=args.server)
    ui = ConsoleUI(client)

    try:
        ui.run()
    except KeyboardInterrupt:
        print('\nSayonara!')
        sys.exit(0)


if __name__ == '__main__':
    main()
