# gpdb/__main__.py
# Allows `python -m gpdb`.

from gpdb.cli import app

if __name__ == "__main__":
    app(prog_name="gpdb")
