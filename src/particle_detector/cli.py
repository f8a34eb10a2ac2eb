"""CLI for particle detection with concurrent processing."""

import asyncio
import sys
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import click

from particle_detector import config
from particle_detector.models import DetectionConfig, DetectionState, RegionOfInterest
from particle_detector.nodes.debug import write_debug_artifacts
from particle_detector.pipeline import run_pipeline_async
from particle_detector.utils.export import write_candidates_csv, write_result_json


@dataclass(frozen=True)
class ImageOutcome:
    """Pipeline state for one image, or the exception that escaped it."""

    path: Path
    state: DetectionState | None = None
    error: Exception | None = None


async def detect_images(
    images: tuple[Path, ...],
    detection_config: DetectionConfig,
    roi: RegionOfInterest | None,
    max_concurrency: int,
    verbose: bool = False,
) -> AsyncIterator[ImageOutcome]:
    """Yield one outcome per image as it finishes, running at most ``max_concurrency`` at once."""
    gate = asyncio.Semaphore(max_concurrency)

    async def _detect(path: Path) -> ImageOutcome:
        async with gate:
            if verbose:
                click.echo(f"Processing: {path}")
            try:
                state = await run_pipeline_async(str(path), detection_config, roi)
            except Exception as e:
                return ImageOutcome(path, error=e)
        return ImageOutcome(path, state=state)

    for finished in asyncio.as_completed([_detect(path) for path in images]):
        yield await finished


@click.command()
@click.argument("images", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output JSON file (single image)",
)
@click.option("--output-dir", type=click.Path(path_type=Path), help="Output directory (batch mode)")
@click.option("--csv", "write_csv", is_flag=True, help="Also write a CSV of the detections")
@click.option(
    "--all-candidates",
    is_flag=True,
    help="CSV lists every local maximum instead of the accepted ones",
)
@click.option(
    "--roi",
    type=(int, int, int, int),
    default=None,
    metavar="X0 X1 Y0 Y1",
    help="Inclusive 0-based crop bounds applied before detection",
)
@click.option(
    "--window-size",
    type=int,
    default=config.DEFAULT_WINDOW_SIZE,
    help="Local-maximum / local-mean window (odd)",
)
@click.option(
    "--thresh-coef",
    type=float,
    default=config.DEFAULT_THRESH_COEF,
    help="Coefficient of the background significance score",
)
@click.option(
    "--percentile",
    type=float,
    default=config.DEFAULT_PERCENTILE,
    help="Score quantile used as the acceptance cutoff (0-1)",
)
@click.option(
    "--debug-dir",
    type=click.Path(path_type=Path),
    help="Write detection overlay and response-curve plots here",
)
@click.option(
    "--max-concurrency",
    type=int,
    default=config.DEFAULT_MAX_CONCURRENCY,
    help="Max concurrent image processing",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def main(
    images: tuple[Path, ...],
    output: Path | None,
    output_dir: Path | None,
    write_csv: bool,
    all_candidates: bool,
    roi: tuple[int, int, int, int] | None,
    window_size: int,
    thresh_coef: float,
    percentile: float,
    debug_dir: Path | None,
    max_concurrency: int,
    verbose: bool,
) -> None:
    """Detect fluorescent particles in microscopy images."""
    if not images:
        click.echo("Error: No input images provided", err=True)
        sys.exit(1)

    batch = len(images) > 1 or output_dir is not None

    if batch and output:
        click.echo("Error: Use --output-dir for batch processing", err=True)
        sys.exit(1)

    if output_dir:
        output_dir.mkdir(parents=True, exist_ok=True)
    if max_concurrency < 1:
        click.echo("Error: --max-concurrency must be >= 1", err=True)
        sys.exit(1)

    try:
        detection_config = DetectionConfig(
            window_size=window_size,
            thresh_coef=thresh_coef,
            percentile=percentile,
        )
    except ValueError as e:
        click.echo(f"Error: invalid detection settings: {e}", err=True)
        sys.exit(1)

    region = None
    if roi is not None:
        x0, x1, y0, y1 = roi
        region = RegionOfInterest(x_min=x0, x_max=x1, y_min=y0, y_max=y1)

    def _write_outputs(outcome: ImageOutcome) -> bool:
        """Persist one image's results; returns whether it counts as a success."""
        state, img_path = outcome.state, outcome.path
        if outcome.error is not None or state is None:
            click.echo(f"Error processing {img_path}: {outcome.error}", err=True)
            return False

        if state.output is None:
            for e in state.errors:
                click.echo(f"  [{e.stage.value}] {e.message}", err=True)
            if state.errors and all(e.recoverable for e in state.errors):
                # No local maxima: zero detections, not a failure.
                click.echo(f"{img_path.name}: detected 0 particles")
                return True
            click.echo(f"Error processing {img_path}", err=True)
            return False

        if batch:
            out_path = (output_dir or img_path.parent) / f"{img_path.stem}.json"
        else:
            out_path = output or Path(f"{img_path.stem}.json")

        result = state.output
        write_result_json(result, out_path)
        if write_csv:
            rows = result.all_candidates if all_candidates else result.accepted
            write_candidates_csv(rows, out_path.with_suffix(".csv"))
        if debug_dir is not None and state.grid is not None:
            for w in write_debug_artifacts(state.grid, result, debug_dir, img_path.stem):
                click.echo(f"  Warning: {w}", err=True)

        click.echo(
            f"{img_path.name}: detected {result.n_accepted} particles "
            f"({len(result.all_candidates)} local maxima, threshold {result.threshold:.4g})"
        )
        if verbose:
            click.echo(f"  Output: {out_path}")
            for w in result.warnings:
                click.echo(f"  {w}", err=True)
        return True

    async def _run() -> tuple[int, int]:
        success_count = 0
        fail_count = 0
        async for outcome in detect_images(
            images, detection_config, region, max_concurrency, verbose
        ):
            if _write_outputs(outcome):
                success_count += 1
            else:
                fail_count += 1
        return success_count, fail_count

    success_count, fail_count = asyncio.run(_run())

    if batch:
        click.echo(
            f"Processed {success_count + fail_count} images: "
            f"{success_count} success, {fail_count} failed"
        )

    if fail_count > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
