"""
Play the population path quiz in the terminal.

Start on a (west coast) state, hop to neighboring states by guessing whether
each one has a lower or higher population, and try to reach the east coast.
"""
import argparse
import random
import sys

from popquiz.adjacency import AdjacencyIndex
from popquiz.errors import PopQuizError
from popquiz.events import GameEnded, QuestionOpened, ScoreChanged
from popquiz.game import GameStateMachine, start_codes_policy
from popquiz.loading import load_attribute_table, load_features
from popquiz.registry import RegionRegistry
from popquiz.settings import get_data_settings, get_quiz_settings


def build_game(features_source, attributes_source, settings_file='settings.json', seed=None):
    quiz = get_quiz_settings(settings_file)
    canvas = quiz['canvas']

    print("[1/2] Loading regions...")
    features = load_features(features_source, verbose=True)
    registry = RegionRegistry.from_features(
        features,
        width=canvas['width'],
        height=canvas['height'],
        pad=canvas['padding'],
        precision=quiz['vertex_precision'],
        verbose=True,
    )
    adjacency = AdjacencyIndex(registry)
    print(f"   - {adjacency.connection_count()} neighbor pairs")

    print("[2/2] Loading populations...")
    attributes = load_attribute_table(attributes_source, verbose=True)
    attributes.require(r.code for r in registry)

    return GameStateMachine(
        registry,
        adjacency,
        attributes,
        is_preferred_start=start_codes_policy(quiz['start_codes']),
        goal_codes=quiz['goal_codes'],
        rng=random.Random(seed),
    )


def print_event(event):
    if isinstance(event, QuestionOpened):
        print(f"\nDoes {event.neighbor_name} have a lower or higher population than {event.current_name}?")
    elif isinstance(event, ScoreChanged) and event.score:
        print(f"   Correct! Score: {event.score}")
    elif isinstance(event, GameEnded):
        print(f"\n{'='*70}")
        print("Game Over!")
        print(event.message)
        print(f"{'='*70}")


def play_round(game, renderer=None, prompt=input):
    """Play one game until it is won or lost. Returns the final state."""
    registry = game.registry
    state = game.initialize()
    print(f"\nYou start in {registry.region(state.current).name}.")

    while not game.state.status.is_terminal:
        if renderer is not None:
            renderer.refresh()

        current = registry.region(game.state.current)
        choices = sorted(game.eligible_neighbors(), key=lambda i: registry.region(i).name)
        print(f"\nCurrent: {current.name}   Score: {game.state.score}")
        for n, i in enumerate(choices, 1):
            print(f"  {n}. {registry.region(i).name}")

        reply = prompt("Pick a neighbor (number): ").strip()
        if not reply.isdigit() or not 1 <= int(reply) <= len(choices):
            print("[!] Not a valid choice")
            continue
        game.select_neighbor(choices[int(reply) - 1])

        reply = prompt("Lower or higher? [l/h]: ").strip().lower()
        if reply not in ('l', 'h', 'lower', 'higher'):
            print("[!] Answer 'l' or 'h'")
            continue
        question = game.state.pending
        state = game.answer(reply.startswith('l'))
        if question is not None and question.neighbor_index in state.incorrect:
            print(f"   Wrong! {registry.region(question.neighbor_index).name} "
                  f"has {question.neighbor_value:,} vs {question.current_value:,}.")

    if renderer is not None:
        renderer.refresh()
    print(f"Final score: {game.state.score}")
    return game.state


def main():
    parser = argparse.ArgumentParser(
        description='Population path quiz',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Defaults from settings.json (or the public US states GeoJSON + population.json)
  python play_quiz.py

  # Local data, reproducible start, map image after every move
  python play_quiz.py --features data/states.json --attributes data/population.json --seed 7 --render generated/map.png
        """
    )
    parser.add_argument('--features', type=str, default=None,
                        help='GeoJSON file, URL, or naturalearth:<country>')
    parser.add_argument('--attributes', type=str, default=None,
                        help='JSON file or URL of code -> population')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the start region')
    parser.add_argument('--render', type=str, default=None,
                        help='Write the map to this PNG after every move')
    parser.add_argument('--settings', type=str, default='settings.json',
                        help='Settings file (default: settings.json)')
    args = parser.parse_args()

    try:
        data = get_data_settings(args.settings)
        game = build_game(
            args.features or data['features'],
            args.attributes or data['attributes'],
            settings_file=args.settings,
            seed=args.seed,
        )
    except PopQuizError as e:
        print(f"[!] {e}")
        return 1

    game.events.subscribe(print_event)
    renderer = None
    if args.render:
        from popquiz.rendering import MapRenderer
        renderer = MapRenderer(game, args.render)

    try:
        while True:
            play_round(game, renderer)
            if input("\nPlay again? [y/N]: ").strip().lower() not in ('y', 'yes'):
                break
    except (KeyboardInterrupt, EOFError):
        print()
    return 0


if __name__ == '__main__':
    sys.exit(main())
