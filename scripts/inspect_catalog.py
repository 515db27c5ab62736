import argparse
import json
import sys
from pathlib import Path

# Add the source tree to the Python path
sys.path.append(str(Path(__file__).parent.parent / "src"))

from innerquest.events.catalog import CatalogLoadError, EventCatalog
from innerquest.events.queries import count_events_by_phase, get_events_by_phase


def main():
    parser = argparse.ArgumentParser(description="Inspect an InnerQuest event catalog.")
    parser.add_argument(
        "--events",
        type=str,
        default="data/events.json",
        help="Path to the event catalog (JSON or YAML).",
    )
    parser.add_argument("--event", type=str, help="ID of a single event to dump.")
    parser.add_argument("--phase", type=int, help="List the events eligible in this phase.")
    parser.add_argument("--tag", type=str, help="List the events carrying this tag.")
    args = parser.parse_args()

    try:
        catalog = EventCatalog.load(Path(args.events))
    except CatalogLoadError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.event:
        event = catalog.by_id(args.event)
        if event is None:
            print(f"Error: Event '{args.event}' not found in the catalog.")
            sys.exit(1)
        print(json.dumps(event.to_dict(), indent=2, ensure_ascii=False))
        return

    if args.phase is not None:
        print(f"--- Events for phase {args.phase} ---")
        for event in get_events_by_phase(catalog, args.phase):
            print(f"{event.id} (weight {event.weight})")
        return

    if args.tag:
        print(f"--- Events tagged '{args.tag}' ---")
        for event in catalog.by_tag(args.tag):
            print(event.id)
        return

    print(f"--- Catalog statistics for '{args.events}' ---")
    print(json.dumps(catalog.statistics().to_dict(), indent=2))
    print("\n--- Events per phase ---")
    for name, count in count_events_by_phase(catalog).items():
        print(f"{name}: {count}")


if __name__ == "__main__":
    main()
