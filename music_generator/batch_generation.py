"""Demo batch: one generated piece per scale type.

``generate_demo_pieces`` renders the same short form (four measures of 4/4 by
default) in every :class:`~music_generator.theory.ScaleType`, all rooted at
middle C, so the scales can be compared side by side.  ``export_demo`` writes
the results as ``demo_<scale>.mid`` files.

Design Notes
------------
Each scale gets its own :class:`MusicGenerator` and, when a seed is supplied,
its own ``random.Random`` seeded with ``seed + index``.  No generator state is
shared, which keeps the output independent of execution order and lets the
work move to a :class:`concurrent.futures.ProcessPoolExecutor` when more than
one worker is requested.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ProcessPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .generator import GeneratorConfig, MusicGenerator
from .midi_io import export_piece
from .models import MusicalPiece
from .theory import ScaleType

__all__ = ["generate_demo_pieces", "export_demo", "demo_filename"]

_Job = Tuple[GeneratorConfig, int, int, Optional[int]]


def demo_filename(scale_type: ScaleType) -> str:
    """Return ``demo_<scale>.mid`` for ``scale_type``."""

    return f"demo_{scale_type.value.lower()}.mid"


def _generate_single(job: _Job) -> MusicalPiece:
    """Worker entry point generating one demo piece."""

    config, measures, time_signature, job_seed = job
    rng = random.Random(job_seed) if job_seed is not None else None
    generator = MusicGenerator(config, rng=rng)
    piece = generator.generate_piece(measures, time_signature)
    piece.title = f"{config.scale_type} Demo"
    return piece


def generate_demo_pieces(
    measures: int = 4,
    time_signature: int = 4,
    root: int = 60,
    *,
    seed: Optional[int] = None,
    workers: Optional[int] = 1,
    config: Optional[GeneratorConfig] = None,
) -> Dict[ScaleType, MusicalPiece]:
    """Generate one piece per scale type.

    Parameters
    ----------
    measures, time_signature:
        Size of every piece.
    root:
        Root pitch shared by all scales.  Defaults to C4.
    seed:
        Optional base seed.  Scale ``i`` (in :class:`ScaleType` order) uses
        ``seed + i`` so results are reproducible.
    workers:
        Number of worker processes.  ``1`` runs serially; ``None`` uses one
        worker per scale type.  Zero or negative values raise ``ValueError``.
    config:
        Session settings (tempo, resolution and complexities) shared by every
        piece.  Its scale and root are replaced per piece.  Defaults to a
        fresh :class:`GeneratorConfig`.

    Returns
    -------
    dict[ScaleType, MusicalPiece]
        Pieces keyed by scale type in :class:`ScaleType` order.
    """

    if workers is not None and workers <= 0:
        raise ValueError("workers must be positive")
    scales = list(ScaleType)
    if workers is None:
        workers = len(scales)

    base = config if config is not None else GeneratorConfig(ScaleType.MAJOR, root)
    jobs: List[_Job] = [
        (
            replace(base, scale_type=scale, root_note=root),
            measures,
            time_signature,
            None if seed is None else seed + index,
        )
        for index, scale in enumerate(scales)
    ]
    if workers <= 1:
        pieces = [_generate_single(job) for job in jobs]
    else:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            futs = [pool.submit(_generate_single, job) for job in jobs]
            pieces = [f.result() for f in futs]
    return dict(zip(scales, pieces))


def export_demo(
    output_dir: Union[str, Path], **kwargs
) -> Dict[ScaleType, Path]:
    """Generate the demo pieces and write them into ``output_dir``.

    Keyword arguments are forwarded to :func:`generate_demo_pieces`.  A piece
    that fails to export is logged and skipped so the remaining scales are
    still written; the returned mapping only lists files that exist.
    """

    out = Path(output_dir).expanduser()
    written: Dict[ScaleType, Path] = {}
    for scale_type, piece in generate_demo_pieces(**kwargs).items():
        path = out / demo_filename(scale_type)
        try:
            export_piece(piece, path)
        except (OSError, ValueError) as exc:
            logging.error("Could not write %s demo: %s", scale_type, exc)
            continue
        logging.info("%s demo generated: %s", scale_type, path)
        written[scale_type] = path
    return written
