"""Run the planner API with uvicorn: python -m treeplanner"""
import os

import uvicorn


def main():
    uvicorn.run(
        "treeplanner.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=os.environ.get("ENVIRONMENT", "development") == "development",
    )


if __name__ == "__main__":
    main()
