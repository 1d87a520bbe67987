import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import interview

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")

app = FastAPI(title="Interview Generation Service")

# Lets the frontend dev server call the API directly
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Change to ["http://localhost:3000"] in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(interview.router)


@app.get("/")
def read_root():
    return {"status": "Online"}
