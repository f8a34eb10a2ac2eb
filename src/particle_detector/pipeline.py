"""LangGraph pipeline for particle detection."""

from langgraph.graph import END, StateGraph
from numpy.typing import ArrayLike

from particle_detector.models import (
    DetectionConfig,
    DetectionResult,
    DetectionState,
    ProcessingError,
    ProcessingStage,
    RegionOfInterest,
)
from particle_detector.nodes import classify, detect, load, preprocess
from particle_detector.utils.grid import Grid, as_grid


def _has_fatal_error(state: DetectionState, stage: ProcessingStage) -> bool:
    return any(err.stage == stage and not err.recoverable for err in state.errors)


def _route_load(state: DetectionState) -> str:
    if _has_fatal_error(state, ProcessingStage.INPUT):
        return END
    if state.grid is not None:
        return "preprocess"
    return END


def _route_preprocess(state: DetectionState) -> str:
    if _has_fatal_error(state, ProcessingStage.PREPROCESS):
        return END
    if state.enhanced is not None:
        return "detect"
    return END


def _route_detect(state: DetectionState) -> str:
    if _has_fatal_error(state, ProcessingStage.DETECT):
        return END
    # An empty candidate set is recoverable but leaves nothing to classify.
    if state.candidates:
        return "classify"
    return END


def _build_graph() -> StateGraph:
    graph = StateGraph(DetectionState)

    graph.add_node("load", load)
    graph.add_node("preprocess", preprocess)
    graph.add_node("detect", detect)
    graph.add_node("classify", classify)

    graph.set_entry_point("load")

    graph.add_conditional_edges("load", _route_load, {"preprocess": "preprocess", END: END})
    graph.add_conditional_edges(
        "preprocess", _route_preprocess, {"detect": "detect", END: END}
    )
    graph.add_conditional_edges("detect", _route_detect, {"classify": "classify", END: END})
    graph.add_edge("classify", END)

    return graph


def create_pipeline():
    """Compile the graph; the same compiled graph serves invoke and ainvoke."""
    return _build_graph().compile()


def _as_state(result: object) -> DetectionState:
    return result if isinstance(result, DetectionState) else DetectionState(**result)


def run_pipeline(
    image_path: str,
    config: DetectionConfig | None = None,
    roi: RegionOfInterest | None = None,
) -> DetectionState:
    initial = DetectionState(image_path=image_path, roi=roi, config=config or DetectionConfig())
    return _as_state(pipeline.invoke(initial))


async def run_pipeline_async(
    image_path: str,
    config: DetectionConfig | None = None,
    roi: RegionOfInterest | None = None,
) -> DetectionState:
    """Async pipeline runner for concurrent image processing."""
    initial = DetectionState(image_path=image_path, roi=roi, config=config or DetectionConfig())
    return _as_state(await pipeline.ainvoke(initial))


def run_grid_pipeline(
    grid: Grid | ArrayLike,
    config: DetectionConfig | None = None,
) -> DetectionState:
    initial = DetectionState(grid=as_grid(grid), config=config or DetectionConfig())
    return _as_state(pipeline.invoke(initial))


def run_detection_pipeline(
    grid: Grid | ArrayLike,
    config: DetectionConfig | None = None,
) -> DetectionResult | ProcessingError:
    """
    Detect particles in an already-loaded 2-D grid.

    Returns:
        DetectionResult (all candidates, accepted subset, threshold, background
        statistics) or the first ProcessingError that stopped the run
    """
    state = run_grid_pipeline(grid, config)
    if state.errors:
        return state.errors[0]
    if state.output is None:
        return ProcessingError(
            stage=ProcessingStage.CLASSIFY,
            error_type="incomplete_pipeline",
            recoverable=False,
            message="Pipeline finished without a detection result",
        )
    return state.output


pipeline = create_pipeline()
