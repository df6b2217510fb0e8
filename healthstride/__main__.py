import subprocess
import sys
from pathlib import Path


def main():
    if len(sys.argv) > 1 and sys.argv[1] == "app":
        run_app()
        return
    from .main import main as main_func
    main_func()


def run_app():
    """Run the Streamlit dashboard"""
    streamlit_app_path = Path(__file__).parent / "streamlit_app.py"
    subprocess.run([sys.executable, "-m", "streamlit", "run", str(streamlit_app_path)])


if __name__ == "__main__":
    main()
