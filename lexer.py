from fastapi import FastAPI
from pydantic import BaseModel
from typing import List, Tuple
from models import Token, Diagnostic, LexError, ApiOk, ApiErr, KEYWORDS, INT32_MAX, WORD
import logging, re

log = logging.getLogger(__name__)

app = FastAPI(title="lexer-svc")

@app.get("/healthz")
def healthz():
    return {"ok":True}

TOKENS = [
    ("EQUAL", r"="),
    ("SEMICOLON", r";"),
    ("STRING", r'"[^"]*"?'),
    ("INT", r"[0-9]+"),
    ("WORD", WORD),
    ("WS", r"[ \t\n]+"),
]
MASTER = re.compile("|".join(f"(?P<T{i}>{p})" for i,(_,p) in enumerate(TOKENS)))

class LexReq(BaseModel):
    source: str
    strict: bool = False

def tokenize(source: str, strict: bool = False) -> Tuple[List[Token], List[Diagnostic]]:
    """Scan source into tokens, always terminated by a single EOF.

    In strict mode the first problem raises LexError; otherwise the offending
    input is skipped and a diagnostic is recorded.
    """
    out: List[Token]=[]; diags: List[Diagnostic]=[]
    def fail(pos, code, msg):
        d=Diagnostic(phase="lex", code=code, index=pos, msg=msg)
        if strict: raise LexError(d)
        log.debug("lex: %s", d)
        diags.append(d)

    s=source; i=0
    while i < len(s):
        m=MASTER.match(s,i)
        if not m:
            fail(i, "E_LEX_UNK_CHAR", f"Unexpected character {s[i]!r}")
            i+=1; continue
        name,_=TOKENS[int(m.lastgroup[1:])]
        text=m.group(); si=i; i=m.end()
        if name == "WS": continue
        if name == "STRING":
            if len(text) < 2 or not text.endswith('"'):
                fail(si, "E_LEX_UNTERMINATED_STR", "Unterminated string literal")
                continue
            out.append(Token(type="STRING", lexeme=text[1:-1], pos=si))
        elif name == "INT":
            digits=text.lstrip("0") or "0"
            # int() refuses very long digit strings, so bound the length first
            if len(digits) > len(str(INT32_MAX)) or int(digits) > INT32_MAX:
                fail(si, "E_LEX_INT_OVERFLOW", f"Integer {text[:12]}{'...' if len(text) > 12 else ''} does not fit in 32 bits")
                continue
            out.append(Token(type="INT", lexeme=text, pos=si, value=int(digits)))
        elif name == "WORD":
            out.append(Token(type="KW" if text in KEYWORDS else "IDENT", lexeme=text, pos=si))
        else:
            out.append(Token(type=name, lexeme=text, pos=si))
    out.append(Token(type="EOF", pos=len(s)))
    log.debug("lex: %d tokens, %d diagnostics", len(out), len(diags))
    return out, diags

@app.post("/lex")
def lex(req: LexReq):
    try:
        toks, diags = tokenize(req.source, strict=req.strict)
    except LexError as e:
        return ApiErr.from_diagnostic(e.diagnostic)
    return ApiOk(data={"tokens":[t.model_dump() for t in toks],
                       "diagnostics":[d.model_dump() for d in diags]})
