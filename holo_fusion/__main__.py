"""Allow ``python -m holo_fusion`` to launch the fusion service."""

from holo_fusion import run

if __name__ == "__main__":
    run()
