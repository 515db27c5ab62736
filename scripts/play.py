import argparse
import logging
import sys
from pathlib import Path

# Add the source tree to the Python path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from innerquest.core.config import DEFAULT_CONFIG, load_config
from innerquest.core.game import Game
from innerquest.core.rng import get_seeded_rng
from innerquest.i18n.text import localized_text, resolve_locale
from innerquest.io.storage import SaveStore
from innerquest.reports.day_report import generate_day_report


def main():
    parser = argparse.ArgumentParser(description="Autoplay InnerQuest for a number of days.")
    parser.add_argument(
        "--events",
        type=str,
        default="data/events.json",
        help="Path to the event catalog (JSON or YAML).",
    )
    parser.add_argument(
        "--config", type=str, default="data/config.yaml", help="Path to the game config YAML file."
    )
    parser.add_argument(
        "--days", type=int, default=14, help="Number of days to play."
    )
    parser.add_argument(
        "--seed", type=int, default=42, help="Seed for event selection and choices."
    )
    parser.add_argument(
        "--locale", type=str, default="en", help="Locale used to print event text."
    )
    parser.add_argument(
        "--save-dir", type=str, help="Directory to save the game in after every day."
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Show engine log messages."
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else DEFAULT_CONFIG
    store = SaveStore(Path(args.save_dir), config) if args.save_dir else None
    rng = get_seeded_rng(args.seed)
    locale = resolve_locale(args.locale, config)

    game = Game(config=config, store=store, rng=rng)
    game.initialize(Path(args.events))
    print(f"Loaded {len(game.catalog)} events from '{args.events}' with seed {args.seed}.")

    event = game.new_game()
    for _ in range(args.days):
        print(f"\n{localized_text(event.text, locale, config.fallback_locale)}")
        choice_index = rng.randrange(len(event.choices))
        choice = event.choices[choice_index]
        print(f"> {localized_text(choice.label, locale, config.fallback_locale)}")

        game.select_choice(choice_index)
        print(generate_day_report(game.log, game.player))

        event = game.submit_journal("")
        if event is None:
            print("The journey is complete.")
            break

    summary = game.player.summary()
    print(f"Finished on day {summary['day']} ({summary['phase']}) with balance {summary['globalBalance']:.1f}.")


if __name__ == "__main__":
    main()
