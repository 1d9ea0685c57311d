#!/usr/bin/env python3
"""
CLI module for Quant Pie - Command-Line Interface

Reads one image, applies one quantization operation (monochrome, palette,
dithering or bayer) and writes the result. Uses Rich for terminal output.
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import List, Optional

# Rich imports for terminal output
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

# Local imports
from quantize_lib import QuantizeMode, ImageQuantizer
from config_manager import ConfigManager, ConfigValidationError
from utils import ImageCodecError, describe_image, load_rgb_image, save_image


# Initialize Rich console
console = Console()

logger = logging.getLogger('quant_pie')

VALID_OPERATIONS = [mode.value for mode in QuantizeMode]


def setup_logging(verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None):
    """
    Setup logging with Rich handler for terminal output.

    Args:
        verbose: Enable verbose (DEBUG) logging
        quiet: Suppress all but ERROR messages
        log_file: Optional path to log file
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handlers = []

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=True,
        rich_tracebacks=True
    )
    handlers.append(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers
    )

    logger.setLevel(level)
    return logger


# ==================== Image Processing ====================

def process_image(input_path: str,
                  output_path: str,
                  operation: str,
                  threshold: float = 0.5,
                  seed: Optional[int] = None) -> bool:
    """
    Decode, quantize and encode a single image.

    An unrecognized operation only logs a warning and counts as success:
    nothing is read or written in that case.

    Args:
        input_path: Image to read
        output_path: Destination file, format inferred from its extension
        operation: One of VALID_OPERATIONS
        threshold: Brightness threshold for the monochrome operation
        seed: Optional seed for the dithering operation

    Returns:
        True if successful (or the operation was unrecognized), False if the
        image could not be read or written
    """
    try:
        quantizer = ImageQuantizer(operation, threshold=threshold, seed=seed)
    except ValueError:
        logger.warning(f"Unrecognized operation: [yellow]{operation}[/] "
                       f"(expected one of: {', '.join(VALID_OPERATIONS)})")
        return True

    try:
        logger.info(f"Loading image: [cyan]{input_path}[/]")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Source: {describe_image(input_path) or 'unreadable'}")
        image = load_rgb_image(input_path)
        logger.debug(f"Image size: {image.size[0]}x{image.size[1]}")

        logger.info(f"Applying operation: [cyan]{quantizer.mode.value}[/]")
        if quantizer.mode == QuantizeMode.MONOCHROME:
            logger.debug(f"Threshold: {threshold}")
        processed_image = quantizer.apply_quantization(image)

        saved_path = save_image(processed_image, output_path)
    except ImageCodecError as e:
        logger.error(f"[bold red]Error:[/] {e}")
        return False

    logger.info(f"Image saved to [cyan]{saved_path}[/]")
    return True


def show_banner():
    """Display application banner."""
    banner = """
[bold cyan]╔═══════════════════════════════════════╗[/]
[bold cyan]║[/]        [bold white]Quant Pie CLI[/] [dim]- v1.0[/]          [bold cyan]║[/]
[bold cyan]║[/]   Image Quantization & Dithering    [bold cyan]║[/]
[bold cyan]╚═══════════════════════════════════════╝[/]
"""
    console.print(banner)


def generate_example_config():
    """Print an example configuration file."""
    example = {
        "_comment": "Quant Pie CLI defaults, overridden by command-line flags",
        "defaults": {
            "output": "out.png",
            "threshold": 0.5,
            "_comment_seed": "Integer for reproducible 'dithering' output, null for random",
            "seed": None
        }
    }

    example_json = json.dumps(example, indent=4)

    console.print("\n[bold cyan]Example Configuration:[/]\n")
    console.print(Panel(example_json, title="config.json", border_style="cyan"))
    console.print("\n[dim]Save this to a .json file and pass it with --config.[/]\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Quant Pie CLI - Image Quantization & Dithering Tool",
        epilog=f"Operations: {', '.join(VALID_OPERATIONS)}"
    )

    parser.add_argument('-i', '--image', type=str, help='Input image')
    parser.add_argument('-o', '--output', type=str, help='Output file (default: out.png)')
    # no argparse 'choices': an unknown name is reported by process_image
    parser.add_argument('-r', '--operation', type=str, help='Operation to apply to the image')
    parser.add_argument('-t', '--threshold', type=float,
                        help='Threshold for the monochrome operation (default: 0.5)')
    parser.add_argument('--seed', type=int, help='Random seed for the dithering operation')
    parser.add_argument('-c', '--config', type=str, help='Path to JSON configuration file')
    parser.add_argument('--example-config', action='store_true', help='Generate example config')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output')
    parser.add_argument('--quiet', '-q', action='store_true', help='Quiet mode (errors only)')
    parser.add_argument('--log-file', type=str, help='Log to file')
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle special commands first (before logging setup)
    if args.example_config:
        show_banner()
        generate_example_config()
        sys.exit(0)

    if not args.image or not args.operation:
        parser.error("the following arguments are required: -i/--image, -r/--operation")

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    if not args.quiet:
        show_banner()

    try:
        config = ConfigManager(args.config)
    except ConfigValidationError as e:
        logger.error(f"[bold red]{e}[/]")
        sys.exit(1)

    if args.config:
        logger.info(f"Loaded configuration from: [cyan]{Path(args.config)}[/]")

    output = args.output if args.output is not None else config.get("defaults", "output")
    threshold = args.threshold if args.threshold is not None else config.get("defaults", "threshold")
    seed = args.seed if args.seed is not None else config.get("defaults", "seed")

    logger.debug(f"Input:  {args.image}")
    logger.debug(f"Output: {output}")

    success = process_image(args.image, output, args.operation, threshold=threshold, seed=seed)

    if success:
        logger.info("[bold green]✓ Processing completed successfully![/]")
        sys.exit(0)
    else:
        logger.error("[bold red]✗ Processing failed![/]")
        sys.exit(1)


if __name__ == "__main__":
    main()
