import logging
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .catalog import CatalogUnavailable
from .models import BlockProgress, DailyProgress, GoalRequest, GradeRequest, SkippedRow, StudyRequest
from .services import StudyService
from .session import EmptyQueueError

app = FastAPI(title="Phrasecards API")

# CORS Setup
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton Service
service = StudyService()


def get_service() -> StudyService:
    return service


def loaded_service(svc: StudyService = Depends(get_service)) -> StudyService:
    if not svc.loaded:
        raise HTTPException(status_code=503, detail=svc.load_error or "Cards not loaded")
    return svc


def card_payload(svc: StudyService) -> dict:
    view = svc.render()
    learned, total = svc.current_block_progress()
    return {
        "card": view.model_dump() if view else None,
        "progress": {"learned": learned, "total": total},
        "daily": svc.daily_progress().model_dump(),
    }


@app.on_event("startup")
async def startup_event():
    try:
        await service.load_catalog()
    except CatalogUnavailable:
        logging.warning("Could not load cards on startup.")


@app.get("/stats")
def get_stats(svc: StudyService = Depends(loaded_service)):
    return svc.get_stats()


@app.get("/diagnostics", response_model=List[SkippedRow])
def get_diagnostics(svc: StudyService = Depends(loaded_service)):
    return svc.load_diagnostics()


@app.post("/study/start")
def start_study(request: StudyRequest, svc: StudyService = Depends(loaded_service)):
    param = request.scene if request.mode == "scene" else request.block
    with svc.lock:
        success, message = svc.build_session(request.mode, param)
        if not success:
            raise HTTPException(status_code=409, detail=message)
        return {"mode": request.mode, "count": len(svc.session.queue), **card_payload(svc)}


@app.get("/study/card")
def get_card(svc: StudyService = Depends(loaded_service)):
    with svc.lock:
        return card_payload(svc)


@app.post("/study/reveal")
def reveal_card(svc: StudyService = Depends(loaded_service)):
    with svc.lock:
        try:
            svc.reveal()
        except EmptyQueueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return card_payload(svc)


@app.post("/study/next")
def next_card(svc: StudyService = Depends(loaded_service)):
    with svc.lock:
        try:
            svc.advance()
        except EmptyQueueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return card_payload(svc)


@app.post("/study/grade")
def grade_card(request: GradeRequest, svc: StudyService = Depends(loaded_service)):
    with svc.lock:
        try:
            svc.grade(request.grade)
        except EmptyQueueError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return card_payload(svc)


@app.get("/blocks", response_model=List[BlockProgress])
def get_blocks(svc: StudyService = Depends(loaded_service)):
    return svc.block_progress_all()


@app.get("/scenes")
def get_scenes(svc: StudyService = Depends(loaded_service)):
    return svc.scenes()


@app.get("/daily", response_model=DailyProgress)
def get_daily(svc: StudyService = Depends(get_service)):
    with svc.lock:
        return svc.daily_progress()


@app.put("/daily/goal", response_model=DailyProgress)
def set_goal(request: GoalRequest, svc: StudyService = Depends(get_service)):
    with svc.lock:
        svc.set_daily_goal(request.goal)
        return svc.daily_progress()
