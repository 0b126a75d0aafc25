"""FastAPI web adapter for the CHIP-8 virtual machine core."""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field
from typing import Optional
from pathlib import Path

from chip8core import run_program, RunOptions
from chip8core.decoder import disassemble
from chip8core.opcode import OpCode
from chip8core.state import MAX_PROGRAM_SIZE, PROGRAM_START


# Constants
STATIC_DIR = Path(__file__).parent.parent / "static"


# Request/Response models
class RunOptionsModel(BaseModel):
    frequency_hz: int = Field(default=700, ge=1, le=1_000_000)
    max_steps: int = Field(default=10000, ge=1, le=1_000_000)
    legacy_shift: bool = False
    sprite_wrap: bool = False
    unknown_instruction: str = Field(default="halt", pattern="^(halt|skip)$")
    stop_on_self_jump: bool = True
    random_seed: Optional[int] = None
    keys_down: list[int] = Field(default_factory=list)
    trace: bool = False
    trace_include_registers: bool = False


class RunRequest(BaseModel):
    program: str  # hex digits, whitespace ignored
    options: Optional[RunOptionsModel] = None


class DisassembleRequest(BaseModel):
    program: str


class RunResponse(BaseModel):
    status: str
    stop_reason: str
    steps_executed: int
    final_state: dict
    screen: list[str]
    beeping: bool
    trace: list[dict]
    error: Optional[dict] = None


class ListingLine(BaseModel):
    addr: int
    opcode: int
    text: str


def decode_program(text: str) -> bytes:
    """Turn a hex string into a program image, rejecting bad input."""
    digits = "".join(text.split())
    try:
        program = bytes.fromhex(digits)
    except ValueError:
        raise HTTPException(status_code=400, detail="Program must be hexadecimal bytes")
    if len(program) > MAX_PROGRAM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Program size exceeds limit of {MAX_PROGRAM_SIZE} bytes",
        )
    return program


# Create FastAPI app
app = FastAPI(
    title="CHIP-8 Virtual Machine",
    description="Web API for running CHIP-8 programs headlessly with tracing",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Execute a CHIP-8 program.

    Args:
        request: Hex-encoded program image and execution options

    Returns:
        Execution result with final state, screen and trace
    """
    program = decode_program(request.program)

    opts = request.options or RunOptionsModel()
    for key in opts.keys_down:
        if not 0 <= key <= 0xF:
            raise HTTPException(status_code=400, detail=f"Invalid key: {key}")

    run_opts = RunOptions(
        frequency_hz=opts.frequency_hz,
        max_steps=opts.max_steps,
        legacy_shift=opts.legacy_shift,
        sprite_wrap=opts.sprite_wrap,
        unknown_instruction=opts.unknown_instruction,
        stop_on_self_jump=opts.stop_on_self_jump,
        random_seed=opts.random_seed,
        keys_down=opts.keys_down,
        trace=opts.trace,
        trace_include_registers=opts.trace_include_registers,
    )

    result = run_program(program, options=run_opts)
    return result.to_dict()


@app.post("/api/disassemble", response_model=list[ListingLine])
async def disassemble_code(request: DisassembleRequest):
    """List a program image as one mnemonic per 2-byte word."""
    program = decode_program(request.program)
    listing = []
    for offset in range(0, len(program) - 1, 2):
        op = OpCode.from_bytes(program[offset], program[offset + 1])
        listing.append({
            "addr": PROGRAM_START + offset,
            "opcode": op.value,
            "text": disassemble(op),
        })
    if len(program) % 2:
        # trailing byte of an odd-length image
        offset = len(program) - 1
        listing.append({
            "addr": PROGRAM_START + offset,
            "opcode": program[offset],
            "text": f"DW 0x{program[offset]:02X}",
        })
    return listing


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
