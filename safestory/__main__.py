"""Entry point for ``python -m safestory <command>``.

Commands:
    normalize: repair a raw story file into a canonical story (JSON on stdout)
    validate:  check a stored story against the story invariants
    play:      read a story end to end, printing every step and the outcome
    serve:     run the story API with uvicorn
"""
from safestory.cli import main

if __name__ == "__main__":
    main()
