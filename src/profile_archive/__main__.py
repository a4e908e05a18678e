from src.profile_archive.server import run_server

# python -m src.profile_archive
if __name__ == "__main__":
    run_server()
