from __future__ import annotations
from typing import Any, Dict, List
import structlog
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from nep_common.logs import configure_logging
from nep_common.settings import load_settings
from nep_ml.errors import InvalidInput, NotTrained
from nep_ml.features import STATE_ZONES, get_feature_names
from nep_ml.registry import ModelStore, get_model_store
from nep_ml.schemas import ModelMetrics

# -----------------------
# Config
# -----------------------
API_TITLE = "Nigerian Election Prediction API"
API_VERSION = "0.1.0"

settings = load_settings()
configure_logging(settings)
logger = structlog.get_logger(__name__)

# served when a prediction is requested before any model has been trained
FALLBACK_PREDICTION: Dict[str, Any] = {
    "predicted_winner": "APC",
    "confidence": 0.45,
    "vote_shares": {"APC": 0.45, "PDP": 0.35, "LP": 0.15, "Other": 0.05},
    "turnout_prediction": 0.35,
    "uncertainty_range": {"min": 0.35, "max": 0.55},
}

# -----------------------
# App
# -----------------------
app = FastAPI(title=API_TITLE, version=API_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_store() -> ModelStore:
    store = get_model_store()
    if store.settings is None:
        store.settings = settings
    return store


# -----------------------
# Schemas
# -----------------------
class TrainRequest(BaseModel):
    # raw records; coerced in the core so list-shaped yearly blocks are accepted
    inputs: List[Dict[str, Any]]
    outputs: List[str]
    modelType: str = Field("random-forest", description="'random-forest' or 'tensorflow'/'neural'")


class TrainingData(BaseModel):
    examples: int
    states: int
    parties: List[str]


class TrainResponse(BaseModel):
    message: str
    metrics: ModelMetrics
    trainingData: TrainingData
    dataHash: str


# -----------------------
# Routes
# -----------------------
@app.get("/health", tags=["ops"])
def health(store: ModelStore = Depends(get_store)):
    try:
        model = store.current()
    except NotTrained:
        return {"status": "ok", "model_loaded": False, "model_type": None, "trained_at": None}
    return {
        "status": "ok",
        "model_loaded": True,
        "model_type": model.model_type.value,
        "trained_at": model.trained_at.isoformat(),
    }


@app.get("/features", tags=["models"])
def features():
    return {"feature_names": get_feature_names(), "state_zones": STATE_ZONES}


@app.post("/train", response_model=TrainResponse, tags=["models"])
def train(req: TrainRequest, store: ModelStore = Depends(get_store)) -> TrainResponse:
    if not req.inputs or not req.outputs or len(req.inputs) != len(req.outputs):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid training data format")
    try:
        model = store.train(req.inputs, req.outputs, model_type=req.modelType)
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    s = model.summary
    return TrainResponse(
        message="Model trained successfully",
        metrics=model.metrics,
        trainingData=TrainingData(examples=s.examples, states=s.regions, parties=list(s.parties)),
        dataHash=s.data_hash,
    )


@app.post("/predict", tags=["models"])
def predict(body: Dict[str, Any], store: ModelStore = Depends(get_store)):
    try:
        result = store.predict(body)
    except InvalidInput as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotTrained:
        logger.warning("prediction_fallback", reason="model not trained")
        return {**FALLBACK_PREDICTION, "fallback": True}
    return {**result.model_dump(mode="json"), "fallback": False}


def run():
    import uvicorn
    uvicorn.run("nep_api.main:app", host="0.0.0.0", port=8000, reload=False)
