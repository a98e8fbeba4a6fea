from fastapi import FastAPI
from pydantic import BaseModel, ValidationError
from typing import Any, Dict
from models import ApiOk, ApiErr, Program, VarDecl, Show, Int
import logging

log = logging.getLogger(__name__)

app = FastAPI(title="codegen-svc")
ARTIFACT = "main.c"

@app.get("/healthz")
def healthz():
    return {"ok": True}

class CodegenReq(BaseModel):
    ast: Dict[str, Any]

ESCAPES = {"\\":"\\\\", '"':'\\"', "\n":"\\n", "\t":"\\t", "\r":"\\r"}

def c_string(text: str, fmt: bool = False) -> str:
    """Escape text for a C string literal; fmt also doubles printf's '%'."""
    out=[]
    for ch in text:
        if ch in ESCAPES: out.append(ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7f: out.append(f"\\{ord(ch):03o}")
        elif fmt and ch == "%": out.append("%%")
        else: out.append(ch)
    return "".join(out)

class EM:
    def __init__(self): self.out=[]
    def emit(self,s,indent=0): self.out.append("    "*indent + s)
    def text(self): return "\n".join(self.out)+"\n"

def gen(n, e: EM):
    if isinstance(n, Program):
        e.emit("#include <stdio.h>"); e.emit(""); e.emit("int main() {")
        for s in n.body: gen(s,e)
        e.emit("return 0;",1); e.emit("}")
    elif isinstance(n, VarDecl):
        if isinstance(n.init, Int): e.emit(f"int {n.id} = {n.init.value};",1)
        else: e.emit(f'char {n.id}[] = "{c_string(n.init.value)}";',1)
    elif isinstance(n, Show):
        e.emit(f'printf("{c_string(n.text, fmt=True)}\\n");',1)
    else: raise TypeError(f"Unknown node {type(n).__name__}")

def generate(program: Program) -> str:
    em=EM(); gen(program,em)
    log.debug("codegen: %d statements -> %d lines", len(program.body), len(em.out))
    return em.text()

@app.post("/codegen")
def codegen_api(req: CodegenReq):
    try:
        text=generate(Program.model_validate(req.ast))
        return ApiOk(data={"artifact_name":ARTIFACT,"program":text})
    except ValidationError as ex:
        return ApiErr(phase="codegen", code="E_CODEGEN_AST", msg=str(ex))
