from dotenv import load_dotenv


from fastapi import FastAPI

from app.api.api_v1 import router as api_v1
from app.core.lifespan import lifespan

load_dotenv()  # Load .env variables into os.environ


app = FastAPI(title="Try-Merge Bot", lifespan=lifespan)


@app.get("/")
def root():
    return {"message": "Hello from try-merge-bot!"}


app.include_router(api_v1)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3000)
