from fastapi import FastAPI, Response
from pydantic import BaseModel
from typing import List
from models import CompileResult, CompileError, Diagnostic
from lexer import tokenize
from parser import parse
from codegen import generate, ARTIFACT
import httpx, logging, os, uuid

log = logging.getLogger(__name__)

def compile_source(source: str, strict: bool = False) -> CompileResult:
    """Run lexer, parser and code generator over source.

    Strict mode stops at the first diagnostic and returns it alone with no
    code. Lenient mode collects every lexer and parser diagnostic and
    generates code from whatever statements parsed.
    """
    try:
        tokens, lex_diags = tokenize(source, strict=strict)
        program, parse_diags = parse(tokens, strict=strict)
    except CompileError as e:
        log.info("compile aborted: %s", e.diagnostic)
        return CompileResult(code=None, diagnostics=[e.diagnostic])
    diags: List[Diagnostic] = lex_diags + parse_diags
    if diags:
        log.info("compiled with %d diagnostics", len(diags))
    return CompileResult(code=generate(program), diagnostics=diags)

# environment variables
LEX = os.getenv("LEX_URL", "http://lexer-svc:8000/lex")
PARSE = os.getenv("PARSE_URL", "http://parser-svc:8000/compile")

app = FastAPI(title="gateway")

@app.get("/healthz")
def healthz():
    return {"ok": True}

class CompileReq(BaseModel):
    source: str
    strict: bool = False

def client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=10)

async def _pipeline(req: CompileReq):
    rid = str(uuid.uuid4())
    hdr = {"X-Request-Id": rid}

    async with client() as c:
        # Step 1: Lexical analysis
        lex = (await c.post(LEX, json={"source": req.source, "strict": req.strict}, headers=hdr)).json()
        if not lex.get("ok"):
            log.info("[%s] lex failed: %s", rid, lex.get("code"))
            return lex

        # Step 2: parser parses, forwards to codegen and merges lexer diagnostics
        data = lex["data"]
        body = {"tokens": data["tokens"], "strict": req.strict, "diagnostics": data["diagnostics"]}
        return (await c.post(PARSE, json=body, headers=hdr)).json()

@app.post("/compile")
async def compile(req: CompileReq):
    return await _pipeline(req)

@app.post("/download")
async def download(req: CompileReq):
    result = await _pipeline(req)
    if not result.get("ok"):
        return result

    text = result["data"]["program"].encode()
    headers = {"Content-Disposition": f"attachment; filename={ARTIFACT}"}
    return Response(content=text, media_type="text/x-c", headers=headers)
