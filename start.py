import sys
import subprocess
import webbrowser
import time
from pathlib import Path

from phrasecards.config import AppConfig

HOST = "127.0.0.1"
PORT = 8000


def find_python():
    venv_path = Path(".venv")
    if sys.platform == "win32":
        python_executable = venv_path / "Scripts" / "python.exe"
    else:
        python_executable = venv_path / "bin" / "python"

    if not python_executable.exists():
        print(f"Virtual environment not found at {python_executable}, using {sys.executable}.")
        return sys.executable
    return str(python_executable)


def main():
    print("Starting Phrasecards...")

    catalog = Path(AppConfig().catalog_path)
    if not catalog.exists():
        print(f"Card source {catalog} not found; the API will report 503 until it exists.")

    cmd = [find_python(), "-m", "uvicorn", "phrasecards.main:app", "--port", str(PORT), "--host", HOST]
    print(f"Running backend: {' '.join(cmd)}")

    process = subprocess.Popen(cmd)
    try:
        # Give uvicorn a moment before opening the API docs
        time.sleep(2)
        webbrowser.open(f"http://{HOST}:{PORT}/docs")

        print("Running. Press Ctrl+C to stop.")
        process.wait()
    except KeyboardInterrupt:
        print("\nStopping...")
        process.terminate()


if __name__ == "__main__":
    main()
