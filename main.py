import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from variant_studio.cli.__main__ import load_source
from variant_studio.core.agents.orchestrator import build_orchestrator
from variant_studio.core.config import (
    configure_logging,
    get_api_host,
    get_api_port,
    load_service_settings,
)
from variant_studio.core.errors import ConfigurationError
from variant_studio.core.gallery import ResultGallery


def serve() -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "variant_studio.backend.api:app",
        host=get_api_host(),
        port=get_api_port(),
    )


def main():
    """Main entry point for one-shot variant generation."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Generate a new background for a food product photo using AI"
    )
    parser.add_argument(
        "image",
        type=str,
        nargs="?",
        help="Path to the product image",
    )
    parser.add_argument(
        "--scene",
        "-s",
        type=str,
        default="",
        help="Describe the desired scene (default: clean professional background)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="output/food-variant-1.png",
        help="Output path for the generated image (default: output/food-variant-1.png)",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the API server instead of generating an image",
    )

    args = parser.parse_args()
    configure_logging()

    if args.serve:
        serve()
        return

    if not args.image:
        parser.error("an image path is required unless --serve is given")

    image_path = Path(args.image)
    if not image_path.is_file():
        print(f"Error: File not found: {image_path}", file=sys.stderr)
        sys.exit(1)

    try:
        settings = load_service_settings()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Generating variant of: {image_path}")
    print(f"Scene: {args.scene or '(default)'}")
    print()

    orchestrator = build_orchestrator(settings)
    gallery = ResultGallery()
    result = asyncio.run(
        orchestrator.generate_variant(load_source(image_path), args.scene, gallery=gallery)
    )

    if result.failure is not None:
        print(
            f"Error [{result.failure.kind.value}]: {result.failure.message}",
            file=sys.stderr,
        )
        sys.exit(1)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(gallery.export(result.variant, output_path.stem).read())

    print(f"Prompt: {result.prompt}")
    print()
    print(f"Success! Variant saved to: {output_path.resolve()}")


if __name__ == "__main__":
    main()
