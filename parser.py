from fastapi import FastAPI
from pydantic import BaseModel
from typing import List, Optional, Tuple
from models import (Token, Diagnostic, ParseError, Program, VarDecl, Show, Int, Str,
                    ApiOk, ApiErr, KEYWORDS)
import logging, os, requests

log = logging.getLogger(__name__)

app = FastAPI(title="parser-svc")
CODEGEN_URL = os.getenv("CODEGEN_URL", "http://codegen-svc:8000")

@app.get("/healthz")
def healthz():
    return {"ok": True}

class ParseReq(BaseModel):
    tokens: List[Token]
    strict: bool = False

class CompileReq(ParseReq):
    diagnostics: List[Diagnostic] = []

# helpers
class Truncated(Exception):
    """Lookahead ran past the last token."""

class Stream:
    def __init__(self, toks): self.t=toks; self.i=0
    def peek(self, k=0) -> Optional[Token]:
        j=self.i+k
        return self.t[j] if 0 <= j < len(self.t) else None
    def need(self, k) -> Token:
        tok=self.peek(k)
        if tok is None: raise Truncated(self.i+k)
        return tok
    def match(self, kind):
        tok=self.peek()
        if tok is not None and tok.type==kind:
            self.i+=1; return tok
        return None

def describe(tok: Token):
    return tok.type if tok.type in ("EQUAL","SEMICOLON","EOF") else f"{tok.type} {tok.lexeme!r}"

def parse(tokens: List[Token], strict: bool = False) -> Tuple[Program, List[Diagnostic]]:
    """Parse a token list into a Program.

    A malformed statement is reported at the offending token and the parser
    moves one token past the statement start. Strict mode raises ParseError
    on the first diagnostic instead.
    """
    s=Stream(tokens); body=[]; diags: List[Diagnostic]=[]

    def fail(idx, code, msg):
        d=Diagnostic(phase="parse", code=code, index=idx, msg=msg)
        if strict: raise ParseError(d)
        log.debug("parse: %s", d)
        diags.append(d)

    def skip(idx, code, msg):
        fail(idx, code, msg)
        s.i+=1
        return None

    def decl():
        kw=s.need(0); ident=s.need(1)
        if ident.type!="IDENT":
            return skip(s.i+1, "E_PARSE_MISSING_IDENT",
                        f"Expected identifier after keyword '{kw.lexeme}', got {describe(ident)}")
        eq=s.need(2)
        if eq.type!="EQUAL":
            return skip(s.i+2, "E_PARSE_MISSING_EQUAL",
                        f"Expected '=' after identifier '{ident.lexeme}', got {describe(eq)}")
        lit=s.need(3)
        if lit.type=="INT": init=Int(value=lit.value)
        elif lit.type=="STRING": init=Str(value=lit.lexeme)
        else:
            return skip(s.i+3, "E_PARSE_MISSING_LITERAL",
                        f"Expected number or string literal after '=', got {describe(lit)}")
        s.i+=4
        return VarDecl(id=ident.lexeme, init=init)

    def show():
        lit=s.need(1)
        if lit.type!="STRING":
            return skip(s.i+1, "E_PARSE_MISSING_SHOW_STR",
                        f"Expected string literal after show, got {describe(lit)}")
        s.i+=2
        return Show(text=lit.lexeme)

    def stmt():
        tok=s.need(0)
        if tok.type!="KW":
            return skip(s.i, "E_PARSE_UNEXPECTED", f"Unexpected {describe(tok)}")
        if tok.lexeme in ("m","c"): return decl()
        if tok.lexeme=="show": return show()
        return skip(s.i, "E_PARSE_UNKNOWN_KW",
                    f"Unknown keyword '{tok.lexeme}', expected one of {', '.join(KEYWORDS)}")

    try:
        while True:
            tok=s.need(0)
            if tok.type=="EOF": break
            node=stmt()
            if node is not None:
                body.append(node)
                s.match("SEMICOLON")
    except Truncated as e:
        fail(e.args[0], "E_PARSE_EOF", "Unexpected end of input")
    log.debug("parse: %d statements, %d diagnostics", len(body), len(diags))
    return Program(body=body), diags

@app.post("/parse")
def parse_api(req: ParseReq):
    try:
        ast, diags = parse(req.tokens, strict=req.strict)
    except ParseError as e:
        return ApiErr.from_diagnostic(e.diagnostic)
    return ApiOk(data={"ast": ast.model_dump(), "diagnostics": [d.model_dump() for d in diags]})

@app.post("/compile")
def compile_api(req: CompileReq):
    try:
        ast, diags = parse(req.tokens, strict=req.strict)

        # forward AST to codegen
        r = requests.post(f"{CODEGEN_URL}/codegen", json={"ast": ast.model_dump()}, timeout=5)
        r.raise_for_status()
        out = r.json()
        merged = [d.model_dump() for d in list(req.diagnostics) + diags]
        if not out.get("ok"):
            out["diagnostics"] = merged + out.get("diagnostics", [])
            return out
        out["data"]["diagnostics"] = merged
        return out

    except ParseError as e:
        return ApiErr.from_diagnostic(e.diagnostic)
    except requests.RequestException as e:
        log.warning("codegen forward failed: %s", e)
        return ApiErr(phase="parse", index=None, code="E_FORWARD_CODEGEN",
                    msg=f"Failed to contact codegen: {e}",
                    diagnostics=list(req.diagnostics) + diags)
