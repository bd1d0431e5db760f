from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from pydantic import BaseModel, Field

from services.echo_sim.app.core.echo import EchoModel, EchoServer
from udprr.config.settings import get_settings

MODEL = EchoModel()

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    server = EchoServer(settings.echo_udp_host, settings.echo_udp_port, MODEL)
    app.state.udp_server = server
    try:
        yield
    finally:
        server.close()

app = FastAPI(title="UDP Echo Service", version="0.1.0", lifespan=lifespan)

class FaultsIn(BaseModel):
    delay_ms: int = Field(0, ge=0, le=5000)
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)

def _faults() -> dict:
    return {
        "delay_ms": MODEL.faults.delay_ms,
        "drop_rate": MODEL.faults.drop_rate,
    }

@app.get("/health")
def health(request: Request):
    server = request.app.state.udp_server
    return {"status": "ok" if server.running else "degraded"}

@app.get("/status")
def status(request: Request):
    server = request.app.state.udp_server
    host, port = server.address
    return {
        **MODEL.snapshot(),
        "faults": _faults(),
        "udp": {
            "host": host,
            "port": port,
            "running": server.running,
            "failure": str(server.failure) if server.failure else None,
        },
    }

@app.post("/control/reset")
def reset():
    MODEL.reset()
    return {"status": "reset", "reset_count": MODEL.reset_count}

@app.get("/control/faults")
def get_faults():
    return _faults()

@app.post("/control/faults")
def set_faults(f: FaultsIn):
    MODEL.faults.delay_ms = f.delay_ms
    MODEL.faults.drop_rate = f.drop_rate
    return {"status": "faults_updated", "faults": f.model_dump()}

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.echo_http_host,
        port=settings.echo_http_port,
        reload=False)
