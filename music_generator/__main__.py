"""Entry point wrapper for ``python -m music_generator``.

Execution is forwarded to :func:`music_generator.main` so ``python -m
music_generator`` and the installed ``music-generator`` console script behave
identically.

Example
-------
The following invocation writes an eight measure piece in 3/4::

    python -m music_generator --measures 8 --time-signature 3 \
        --scale minor --root 62 --output waltz.mid
"""

from . import main

if __name__ == "__main__":
    main()
