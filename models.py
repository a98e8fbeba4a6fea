from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from typing import Optional, Any, Literal, List, Union, Annotated
import re

KEYWORDS = ("m", "c", "show")
INT32_MAX = 2**31 - 1
INT32_MIN = -INT32_MAX - 1
WORD = r"[A-Za-z][^\W\d_]*"
WORD_RE = re.compile(WORD)

class Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)

def check_name(name: str) -> str:
    if not WORD_RE.fullmatch(name):
        raise ValueError(f"{name!r} is not a valid identifier")
    return name

class Token(Frozen):
    type: Literal["KW","IDENT","INT","STRING","EQUAL","SEMICOLON","EOF"]
    lexeme: str = ""
    pos: int = 0
    value: Optional[int] = None

    @model_validator(mode="after")
    def _shape(self):
        # only INT carries a value, and it must fit in 32 bits
        if self.type == "INT":
            if self.value is None or not INT32_MIN <= self.value <= INT32_MAX:
                raise ValueError("INT token needs a 32-bit value")
        elif self.value is not None:
            raise ValueError(f"{self.type} token cannot carry a value")
        if self.type == "IDENT":
            check_name(self.lexeme)
        return self

# AST
class Int(Frozen):
    type: Literal["Int"] = "Int"
    value: int = Field(ge=INT32_MIN, le=INT32_MAX)

class Str(Frozen):
    type: Literal["Str"] = "Str"
    value: str

class VarDecl(Frozen):
    type: Literal["VarDecl"] = "VarDecl"
    id: Annotated[str, AfterValidator(check_name)]
    init: Annotated[Union[Int, Str], Field(discriminator="type")]

class Show(Frozen):
    type: Literal["Show"] = "Show"
    text: str

Stmt = Annotated[Union[VarDecl, Show], Field(discriminator="type")]

class Program(Frozen):
    type: Literal["Program"] = "Program"
    body: List[Stmt] = []

class Diagnostic(Frozen):
    phase: Literal["lex","parse"]
    code: str
    index: int
    msg: str

    def __str__(self):
        return f"{self.phase} error {self.code} at {self.index}: {self.msg}"

class CompileError(Exception):
    def __init__(self, diagnostic: Diagnostic):
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic

class LexError(CompileError): pass
class ParseError(CompileError): pass

class CompileResult(Frozen):
    code: Optional[str] = None
    diagnostics: List[Diagnostic] = []

    @property
    def ok(self) -> bool:
        return self.code is not None

class ApiErr(BaseModel):
    ok: Literal[False] = False
    phase: Literal["lex","parse","codegen"]
    index: Optional[int] = None
    code: str
    msg: str
    diagnostics: List[Diagnostic] = []

    @classmethod
    def from_diagnostic(cls, d: Diagnostic):
        return cls(phase=d.phase, index=d.index, code=d.code, msg=d.msg)

class ApiOk(BaseModel):
    ok: Literal[True] = True
    data: Any
