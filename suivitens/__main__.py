"""Run the API with uvicorn: `python -m suivitens`."""

from suivitens.main import run

if __name__ == "__main__":
    run()
