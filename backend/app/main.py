from __future__ import annotations

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from regatta_core import (
    IllegalStateTransition,
    RaceSession,
    RegattaClockError,
    RegattaData,
    RegattaStore,
)

logger = logging.getLogger(__name__)

TICK_INTERVAL = float(os.getenv("REGATTA_TICK_INTERVAL", "0.1"))


class TextPayload(BaseModel):
    text: str = ""


class PlacePayload(BaseModel):
    status: str


class LoadRacePayload(BaseModel):
    race_number: int = Field(alias="raceNumber")

    model_config = ConfigDict(populate_by_name=True)


class ImportPayload(BaseModel):
    path: str


class SessionCreate(BaseModel):
    race_number: Optional[int] = Field(default=None, alias="raceNumber")

    model_config = ConfigDict(populate_by_name=True)


class ClockModel(BaseModel):
    phase: str
    is_running: bool = Field(alias="isRunning")
    is_cleared: bool = Field(alias="isCleared")
    display: str

    model_config = ConfigDict(populate_by_name=True)


class RecordModel(BaseModel):
    sequence: int
    split: str
    time: str
    lane: Optional[int] = None
    lane_input: str = Field(default="", alias="laneInput")
    place: str

    model_config = ConfigDict(populate_by_name=True)


class SessionResponse(BaseModel):
    id: str
    title: str
    race_number: Optional[int] = Field(default=None, alias="raceNumber")
    clock: ClockModel
    inputs_locked: bool = Field(alias="inputsLocked")
    winning_time: str = Field(alias="winningTime")
    records: List[RecordModel]
    grid: List[List[str]]
    approved: bool
    next_focus: Optional[int] = Field(default=None, alias="nextFocus")

    model_config = ConfigDict(populate_by_name=True)


class ApprovalRowModel(BaseModel):
    lane: str
    place: str
    split: str
    time: str
    school: str


class ApprovalResponse(BaseModel):
    title: str
    approved: bool
    rows: List[ApprovalRowModel]
    html: str


class LaneModel(BaseModel):
    school_name: str = Field(alias="schoolName")
    additional_info: str = Field(alias="additionalInfo")

    model_config = ConfigDict(populate_by_name=True)


class RaceModel(BaseModel):
    race_number: int = Field(alias="raceNumber")
    description: str
    boat_count: int = Field(alias="boatCount")
    boat_class: str = Field(alias="boatClass")
    flight: str
    approved: bool
    lanes: Dict[str, LaneModel]

    model_config = ConfigDict(populate_by_name=True)


class RegattaResponse(BaseModel):
    regatta_name: str = Field(alias="regattaName")
    date: str
    scheduled_races: int = Field(alias="scheduledRaces")
    races: List[RaceModel]

    model_config = ConfigDict(populate_by_name=True)


class SessionRegistry:
    """One timing engine per open race window."""

    def __init__(self) -> None:
        self._sessions: Dict[str, RaceSession] = {}

    def add(self, session: RaceSession) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = session
        return session_id

    def get(self, session_id: str) -> RaceSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        return session

    def remove(self, session_id: str) -> None:
        self.get(session_id).close()
        del self._sessions[session_id]

    def broadcast_regatta(self, regatta: RegattaData) -> None:
        for session in self._sessions.values():
            session.load_regatta_data(regatta)

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()


@lru_cache(maxsize=1)
def store() -> RegattaStore:
    return RegattaStore()


@lru_cache(maxsize=1)
def sessions() -> SessionRegistry:
    return SessionRegistry()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    sessions().close_all()


app = FastAPI(title="Regatta Clock API", version="1.0.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _http_error(exc: RegattaClockError) -> HTTPException:
    if isinstance(exc, LookupError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, IllegalStateTransition):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _response(session_id: str, session: RaceSession, next_focus: Optional[int] = None) -> SessionResponse:
    session.pump_display()
    return SessionResponse(id=session_id, nextFocus=next_focus, **session.snapshot())


async def _current_regatta() -> Optional[RegattaData]:
    try:
        return await asyncio.to_thread(store().regatta)
    except (OSError, ValueError) as exc:
        logger.warning("Regatta table could not be loaded (%s)", exc)
        return None


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/regatta", response_model=RegattaResponse)
async def regatta():
    data = await _current_regatta()
    if data is None:
        raise HTTPException(status_code=404, detail="No regatta data available - please import a regatta table first")
    return RegattaResponse(**data.to_dict())


@app.post("/regatta/import", response_model=RegattaResponse)
async def import_regatta(payload: ImportPayload):
    try:
        data = await asyncio.to_thread(store().load_workbook, payload.path)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to read regatta table %s", payload.path)
        raise HTTPException(status_code=400, detail="Failed to read regatta table") from exc
    sessions().broadcast_regatta(data)
    return RegattaResponse(**data.to_dict())


@app.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(payload: SessionCreate):
    session = RaceSession(regatta=await _current_regatta(), tick_interval=TICK_INTERVAL)
    if payload.race_number is not None:
        try:
            session.load_race(payload.race_number)
        except RegattaClockError as exc:
            raise _http_error(exc) from exc
    session_id = sessions().add(session)
    return _response(session_id, session)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _response(session_id, sessions().get(session_id))


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str) -> None:
    sessions().remove(session_id)


@app.post("/sessions/{session_id}/start", response_model=SessionResponse)
async def start(session_id: str):
    session = sessions().get(session_id)
    loop = asyncio.get_running_loop()

    def post(text: str) -> None:
        loop.call_soon_threadsafe(session.show_display, text)

    try:
        session.start(post=post)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.post("/sessions/{session_id}/lap", response_model=SessionResponse)
async def lap(session_id: str):
    session = sessions().get(session_id)
    try:
        session.lap()
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.post("/sessions/{session_id}/stop", response_model=SessionResponse)
async def stop(session_id: str):
    session = sessions().get(session_id)
    try:
        session.stop()
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.post("/sessions/{session_id}/clear", response_model=SessionResponse)
async def clear(session_id: str):
    session = sessions().get(session_id)
    try:
        session.clear()
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.put("/sessions/{session_id}/records/{sequence}/lane", response_model=SessionResponse)
async def assign_lane(session_id: str, sequence: int, payload: TextPayload):
    session = sessions().get(session_id)
    try:
        session.assign_lane(sequence, payload.text)
        next_focus = session.next_focus(sequence)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session, next_focus=next_focus)


@app.put("/sessions/{session_id}/records/{sequence}/split", response_model=SessionResponse)
async def edit_split(session_id: str, sequence: int, payload: TextPayload):
    session = sessions().get(session_id)
    try:
        session.edit_split(sequence, payload.text)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.put("/sessions/{session_id}/lanes/{lane}/place", response_model=SessionResponse)
async def set_place(session_id: str, lane: int, payload: PlacePayload):
    session = sessions().get(session_id)
    try:
        session.set_place_status(lane, payload.status)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _response(session_id, session)


@app.put("/sessions/{session_id}/winning-time", response_model=SessionResponse)
async def set_winning_time(session_id: str, payload: TextPayload):
    session = sessions().get(session_id)
    try:
        session.set_winning_time(payload.text)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.post("/sessions/{session_id}/load-race", response_model=SessionResponse)
async def load_race(session_id: str, payload: LoadRacePayload):
    session = sessions().get(session_id)
    try:
        session.load_race(payload.race_number)
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return _response(session_id, session)


@app.get("/sessions/{session_id}/approval", response_model=ApprovalResponse)
async def approval(session_id: str):
    session = sessions().get(session_id)
    return ApprovalResponse(
        title=session.title,
        approved=session.approved,
        rows=[ApprovalRowModel(**vars(row)) for row in session.approval_rows()],
        html=session.approval_html(),
    )


@app.post("/sessions/{session_id}/approve", response_model=ApprovalResponse)
async def approve(session_id: str):
    session = sessions().get(session_id)
    try:
        session.approve()
    except RegattaClockError as exc:
        raise _http_error(exc) from exc
    return await approval(session_id)
