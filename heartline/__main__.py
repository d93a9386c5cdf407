"""Entry point for ``python -m heartline <command>``.

Commands:
    serve     – run the FastAPI app under uvicorn
    simulate  – seeded, scripted play-through printed day by day
    content   – validate the YAML content tables
    stages    – print the relationship stage bands
    doctor    – check deps, content and (optionally) a running API
"""
from heartline.cli import main

if __name__ == "__main__":
    main()
