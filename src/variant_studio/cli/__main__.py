#!/usr/bin/env python3
"""Terminal-based CLI for Food Variant Studio."""

from __future__ import annotations

import asyncio
import mimetypes
import shlex
import sys
from pathlib import Path

from dotenv import load_dotenv

from variant_studio.core.agents import (
    COMMON_INGREDIENTS,
    RecipeBrainstormAgent,
    VariantOrchestrator,
)
from variant_studio.core.agents.orchestrator import build_orchestrator
from variant_studio.core.config import (
    configure_logging,
    get_brainstorm_max_retries,
    get_brainstorm_model_id,
    load_service_settings,
)
from variant_studio.core.errors import BrainstormError, ConfigurationError
from variant_studio.core.gallery import ResultGallery
from variant_studio.core.schemas import RecipeIdea, SourceImage


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  Food Variant Studio CLI")
    print("  AI-powered product photography backgrounds")
    print("=" * 60)


def print_help() -> None:
    """Print available commands."""
    print("""
Available Commands:
  generate <image> [scene]   - Generate a variant of a product image
  gallery                    - List variants generated this session
  export <n> [path]          - Save variant n (1-based) to disk
  brainstorm                 - Get a seasonal recipe idea
  help                       - Show this help message
  exit                       - Exit the application
  quit                       - Exit the application
""")


def load_source(path: Path) -> SourceImage:
    """Read an image file from disk, guessing its MIME type from the name."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return SourceImage(
        data=path.read_bytes(), mime_type=mime_type or "", filename=path.name
    )


def generate_variant(
    runner: asyncio.Runner,
    orchestrator: VariantOrchestrator,
    gallery: ResultGallery,
    args: list[str],
) -> None:
    """Run the pipeline once and report the outcome."""
    if not args:
        print("Usage: generate <image> [scene description]")
        return

    path = Path(args[0]).expanduser()
    if not path.is_file():
        print(f"Error: File not found: {path}")
        return

    scene = " ".join(args[1:])
    print("\nGenerating variant...")
    print("This may take a minute.\n")

    result = runner.run(
        orchestrator.generate_variant(load_source(path), scene, gallery=gallery)
    )

    if result.failure is not None:
        failure = result.failure
        print(f"Generation failed [{failure.kind.value}]: {failure.message}")
        print("You can try again with the same command.")
        return

    print(f"Variant {len(gallery)} generated successfully!")
    print(f"Prompt: {result.prompt}")


def show_gallery(gallery: ResultGallery) -> None:
    """Display the session gallery."""
    variants = gallery.list()
    if not variants:
        print("\nNo variants generated yet.")
        return

    print(f"\nGenerated Variants ({len(variants)})")
    print("-" * 50)
    for i, variant in enumerate(variants, 1):
        print(f"\n{i}. {variant.variant_id} ({variant.created_at:%H:%M:%S})")
        print(f"   Prompt: {variant.prompt[:80]}...")


def export_variant(gallery: ResultGallery, args: list[str]) -> None:
    """Write one gallery entry to disk."""
    if not args or not args[0].isdigit():
        print("Usage: export <n> [path]")
        return

    number = int(args[0])
    try:
        variant = gallery.get(number - 1)
    except IndexError:
        print(f"Error: No variant {number}")
        return

    suggested = f"food-variant-{number}"
    target = Path(args[1]) if len(args) > 1 else Path(".")
    if target.is_dir():
        target = target / gallery.export_filename(variant, suggested)

    target.write_bytes(gallery.export(variant, suggested).read())
    print(f"Saved to: {target.resolve()}")


def print_recipe(idea: RecipeIdea) -> None:
    """Pretty-print a recipe idea."""
    print("\n" + "=" * 50)
    print(idea.name.upper())
    print("=" * 50)
    print(f"\n{idea.description}")
    print(f"\nWhy now? {idea.why_seasonable}")
    print(f"Market edge: {idea.market_differentiator}")

    print("\nIngredients:")
    for ingredient in idea.recipe.ingredients:
        print(f"  - {ingredient}")

    print("\nMethod:")
    for i, step in enumerate(idea.recipe.instructions, 1):
        print(f"  {i}. {step}")

    if idea.recipe.tips:
        print("\nPro Tips:")
        for tip in idea.recipe.tips:
            print(f"  * {tip}")


def brainstorm(agent: RecipeBrainstormAgent) -> None:
    """Collect ingredients interactively and ask for a recipe idea."""
    print("\nIngredient library: " + ", ".join(COMMON_INGREDIENTS))
    print("\nWhat ingredients do you have? (comma-separated, Enter for none)")
    ingredients = [i for i in input("> ").split(",") if i.strip()]

    print("\nGenerating recipe idea...")
    try:
        idea = agent.brainstorm(ingredients)
    except BrainstormError as e:
        print(f"\nError generating idea: {e}")
        return

    print_recipe(idea)


def main() -> None:
    """Main CLI loop."""
    load_dotenv()
    configure_logging("WARNING")

    try:
        settings = load_service_settings()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    orchestrator = build_orchestrator(settings)
    agent = RecipeBrainstormAgent(
        settings,
        model_id=get_brainstorm_model_id(),
        max_retries=get_brainstorm_max_retries(),
    )
    gallery = ResultGallery()
    runner = asyncio.Runner()

    print_header()
    print_help()

    while True:
        try:
            line = input("\nstudio> ").strip()
            parts = shlex.split(line) if line else []
            command = parts[0].lower() if parts else ""
            args = parts[1:]

            if command in ("exit", "quit", "q"):
                print("\nGoodbye!")
                runner.close()
                sys.exit(0)

            elif command in ("help", "h", "?"):
                print_help()

            elif command == "generate":
                generate_variant(runner, orchestrator, gallery, args)

            elif command == "gallery":
                show_gallery(gallery)

            elif command == "export":
                export_variant(gallery, args)

            elif command == "brainstorm":
                brainstorm(agent)

            elif command == "":
                continue

            else:
                print(f"Unknown command: {command}")
                print("Type 'help' for available commands.")

        except ValueError as e:
            print(f"Could not parse command: {e}")
        except KeyboardInterrupt:
            print("\n\nInterrupted. Type 'exit' to quit.")
        except EOFError:
            print("\nGoodbye!")
            runner.close()
            sys.exit(0)


if __name__ == "__main__":
    main()
