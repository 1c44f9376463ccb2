import os
from contextlib import contextmanager

from sdlgen.ParseError import ParseError, UnsupportedConstruct
from sdlgen.ParseContext import ParseContext
from sdlgen.Ident import isIdentStart
from sdlgen.Literal import IntegerLiteral, IntegerKind, FloatLiteral, StringLiteral
from sdlgen.Expr import Parenthesized, IdentExpr, LiteralExpr, BinaryOp, UnaryOp, PostOp, Ternary, Cast, Ambiguous
from sdlgen.Value import Value, tryEval, plusOne
from sdlgen.Type import PrimitiveType, IdentType, EnumType, StructType, PointerType, ArrayType, \
                        FnPointerType, DotDotDotType, RustType, InferType, FunctionType
from sdlgen.Struct import CanCopy
from sdlgen.PreProcessor import DefineValue
from sdlgen.PreProcState import PreProcState
from sdlgen.Patch import enumBaseType, isHiddenEnum, isSkippedFunction
from sdlgen.Metadata import Metadata, Hint, Property, Group, GroupValue, propertyType
from sdlgen.Logger import Factory as LoggerFactory

INDENT = '    '

I32 = '::core::primitive::i32'
U32 = '::core::primitive::u32'
I64 = '::core::primitive::i64'
U64 = '::core::primitive::u64'
F32 = '::core::primitive::f32'
F64 = '::core::primitive::f64'
BOOL = '::core::primitive::bool'
C_INT = '::core::ffi::c_int'
C_LONG = '::core::ffi::c_long'
C_ULONG = '::core::ffi::c_ulong'
C_STRING = '*const ::core::ffi::c_char'
LITERAL_INT = '{integer}'

PRIMITIVES = {
  'char': '::core::ffi::c_char',
  'signed char': '::core::ffi::c_schar',
  'unsigned char': '::core::ffi::c_uchar',
  'short': '::core::ffi::c_short',
  'unsigned short': '::core::ffi::c_ushort',
  'int': C_INT,
  'unsigned int': '::core::ffi::c_uint',
  'long': C_LONG,
  'unsigned long': C_ULONG,
  'long long': '::core::ffi::c_longlong',
  'unsigned long long': '::core::ffi::c_ulonglong',
  '__int32': I32,
  'unsigned __int32': U32,
  '__int64': I64,
  'unsigned __int64': U64,
  'float': '::core::ffi::c_float',
  'double': '::core::ffi::c_double',
  'void': '::core::ffi::c_void',
  'bool': BOOL,
  'size_t': '::core::primitive::usize',
  'int8_t': '::core::primitive::i8',
  'uint8_t': '::core::primitive::u8',
  'int16_t': '::core::primitive::i16',
  'uint16_t': '::core::primitive::u16',
  'int32_t': I32,
  'uint32_t': U32,
  'int64_t': I64,
  'uint64_t': U64,
  'intptr_t': '::core::primitive::isize',
  'uintptr_t': '::core::primitive::usize',
  'wchar_t': 'crate::ffi::c_wchar_t',
  'va_list': 'crate::ffi::VaList'
}

VALUE_TYPES = {
  Value.U31: I32,
  Value.F32: F32,
  Value.F64: F64,
  Value.STRING: C_STRING,
  Value.BOOL: BOOL
}

RUST_KEYWORDS = frozenset([
  'abstract', 'as', 'async', 'await', 'become', 'box', 'break', 'const',
  'continue', 'do', 'dyn', 'else', 'enum', 'extern', 'false', 'final', 'fn',
  'for', 'gen', 'if', 'impl', 'in', 'let', 'loop', 'macro', 'match', 'mod',
  'move', 'mut', 'override', 'priv', 'pub', 'ref', 'return', 'static',
  'struct', 'trait', 'true', 'try', 'type', 'typeof', 'unsafe', 'unsized',
  'use', 'virtual', 'where', 'while', 'yield'
])

# these can't be raw identifiers
RESERVED_IDENTS = frozenset(['self', 'Self', 'super', 'crate', '_'])

ASSIGN_OPS = frozenset(['=', '+=', '-=', '*=', '/=', '%=', '<<=', '>>=', '&=', '^=', '|='])
BOOL_OPS = frozenset(['<', '<=', '>', '>=', '==', '!=', '&&', '||'])
SHIFT_OPS = frozenset(['<<', '>>'])

def rustIdent(name):
  name = str(name)
  if name in RESERVED_IDENTS:
    return '%s_' % (name)
  if name in RUST_KEYWORDS:
    return 'r#%s' % (name)
  return name

def commonIdentPrefix(names):
  """
  The longest prefix ending in `_` shared by all names that still leaves every
  name a valid identifier once stripped.
  """
  if not names:
    return ''
  prefix = os.path.commonprefix(names)
  prefix = prefix[:prefix.rfind('_') + 1]
  while prefix:
    if all(len(name) > len(prefix) and isIdentStart(name[len(prefix)]) for name in names):
      break
    prefix = prefix[:prefix[:-1].rfind('_') + 1]
  return prefix

def integerDigits(literal):
  if literal.base == 16:
    return '0x%0*X' % (literal.ndigits, literal.value)
  if literal.base == 8:
    return '0o%0*o' % (literal.ndigits, literal.value)
  if literal.base == 2:
    return '0b%s' % (format(literal.value, '0%db' % (literal.ndigits)))
  return '%d' % (literal.value)

def rustByteString(value):
  out = ['b"']
  for byte in bytearray(value):
    if byte == 0x22:
      out.append('\\"')
    elif byte == 0x5c:
      out.append('\\\\')
    elif 0x20 <= byte <= 0x7e:
      out.append(chr(byte))
    else:
      out.append('\\x%02x' % (byte))
  out.append('\\0"')
  return ''.join(out)

def rustFloat(value, kind):
  text = repr(float(value))
  if text in ('inf', '-inf', 'nan'):
    return None
  if '.' not in text and 'e' not in text:
    text += '.0'
  return '%s_%s' % (text, kind)

def rustCString(value):
  return '%s.as_ptr().cast::<::core::ffi::c_char>()' % (rustByteString(value))

def docText(doc):
  return doc.getText() if doc is not None else ''

class Sym:
  CONST = 'const'
  TYPE = 'type'
  STRUCT = 'struct'
  ENUM = 'enum'
  VARIANT = 'variant'
  MACRO = 'macro'
  FUNCTION = 'function'
  ARG = 'arg'
  PARAM = 'param'
  LOCAL = 'local'

  def __init__(self, ident, kind, ty=None, canCopy=True, canDebug=True, parent=None, shortName=None):
    self.ident = ident
    self.kind = kind
    self.ty = ty
    self.canCopy = canCopy
    self.canDebug = canDebug
    self.parent = parent
    self.shortName = shortName

  def __repr__(self):
    return '<Sym %s %s>' % (self.kind, self.ident)

class Scope:
  def __init__(self):
    self.syms = dict()

  def register(self, sym):
    self.syms[str(sym.ident)] = sym

  def lookup(self, name):
    return self.syms.get(str(name))

class EmitContext:
  """
  Output buffer and state for emitting one module: an indentation aware
  writer, the scope stack of registered symbols and the #define table.
  """

  def __init__(self, module, state=None, knownModules=None):
    self.module = module
    self.state = state if state is not None else PreProcState(module)
    self.knownModules = knownModules
    self.output = []
    self.indentLevel = 0
    self.atLineStart = True
    self.scopes = [Scope()]
    self.currentEnum = None
    self.definedStructs = set()
    self.emittedTypes = set()
    self.metadata = Metadata()
    self.logger = LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

  def write(self, string):
    for (index, line) in enumerate(string.split('\n')):
      if index > 0:
        self.output.append('\n')
        self.atLineStart = True
      if line:
        if self.atLineStart:
          self.output.append(INDENT * self.indentLevel)
        self.output.append(line)
        self.atLineStart = False

  def writeln(self, string=''):
    self.write(string)
    self.write('\n')

  def isEmpty(self):
    return not any(self.output)

  @contextmanager
  def indented(self):
    self.indentLevel += 1
    try:
      yield self
    finally:
      self.indentLevel -= 1

  @contextmanager
  def subscope(self):
    self.scopes.append(Scope())
    try:
      yield self.scopes[-1]
    finally:
      self.scopes.pop()

  def register(self, sym):
    self.scopes[-1].register(sym)
    return sym

  def lookup(self, name):
    for scope in reversed(self.scopes):
      sym = scope.lookup(name)
      if sym is not None:
        return sym
    return None

  def captureOutput(self, fn):
    """Run fn writing into a fresh buffer and return what it wrote."""
    saved = (self.output, self.indentLevel, self.atLineStart)
    self.output = []
    self.indentLevel = 0
    self.atLineStart = True
    try:
      fn()
      return ''.join(self.output)
    finally:
      (self.output, self.indentLevel, self.atLineStart) = saved

  def getOutput(self):
    text = ''.join(self.output).rstrip('\n')
    return text + '\n' if text else ''

class Emitter:
  """
  Lowers parsed header items to Rust FFI declarations. Items, statements and
  expressions are dispatched on their class name.
  """

  def __init__(self, ctx):
    self.ctx = ctx
    self.logger = LoggerFactory().getClassLogger(__name__, self.__class__.__name__)

    self.itemActions = {
      'FileDoc': self.emit_FileDoc,
      'Include': self.emit_Include,
      'Define': self.emit_Define,
      'Undef': self.emit_Undef,
      'Pragma': self.emit_Nothing,
      'Skipped': self.emit_Nothing,
      'ErrorDirective': self.emit_ErrorDirective,
      'WarningDirective': self.emit_WarningDirective,
      'PreProcBlock': self.emit_PreProcBlock,
      'Function': self.emit_Function,
      'TypeDef': self.emit_TypeDef,
      'StructOrUnion': self.emit_StructOrUnion,
      'Enum': self.emit_Enum,
      'VarDecl': self.emit_VarDecl,
      'ExprItem': self.emit_Ignored,
      'FnCallItem': self.emit_Ignored
    }

    self.statementActions = {
      'Block': self.stmt_Block,
      'DoWhile': self.stmt_DoWhile,
      'While': self.stmt_While,
      'IfElse': self.stmt_IfElse,
      'Return': self.stmt_Return,
      'Break': self.stmt_Break,
      'Continue': self.stmt_Continue,
      'VarDecl': self.stmt_VarDecl,
      'ExprItem': self.stmt_ExprItem,
      'FnCallItem': self.stmt_FnCallItem,
      'PreProcBlock': self.stmt_PreProcBlock,
      'Skipped': self.emit_Nothing
    }

    self.exprActions = {
      'Parenthesized': self.expr_Parenthesized,
      'IdentExpr': self.expr_IdentExpr,
      'LiteralExpr': self.expr_LiteralExpr,
      'BoolExpr': self.expr_BoolExpr,
      'FnCall': self.expr_FnCall,
      'Cast': self.expr_Cast,
      'SizeOf': self.expr_SizeOf,
      'UnaryOp': self.expr_UnaryOp,
      'BinaryOp': self.expr_BinaryOp,
      'Ternary': self.expr_Ternary,
      'ArrayIndex': self.expr_ArrayIndex,
      'MemberAccess': self.expr_MemberAccess,
      'Ambiguous': self.expr_Ambiguous
    }

  def emit(self, items):
    self.ctx.definedStructs.update(self._collectStructDefinitions(items))
    self.emitItems(items)
    return self.ctx.getOutput()

  def emitItems(self, items):
    for item in items:
      self.emitItem(item)

  def emitItem(self, item):
    action = self.itemActions.get(item.__class__.__name__)
    if action is None:
      raise UnsupportedConstruct(item.span, "can't emit %s here" % (item.__class__.__name__))
    action(item)

  def _collectStructDefinitions(self, items):
    names = set()
    for item in items:
      name = item.__class__.__name__
      struct = None
      if name == 'StructOrUnion':
        struct = item
      elif name == 'TypeDef' and isinstance(item.ty, StructType):
        struct = item.ty.struct
      elif name == 'PreProcBlock':
        block = item
        while block is not None:
          names.update(self._collectStructDefinitions(block.block))
          block = block.elseBlock
      if struct is not None and struct.fields is not None and struct.ident is not None:
        names.add(struct.ident.getString())
    return names

  def _soft(self, what, fn, errors=UnsupportedConstruct):
    """Emit through fn, dropping the whole construct with a warning if it can't be lowered."""
    try:
      text = self.ctx.captureOutput(fn)
    except errors as error:
      self.logger.warning('skipping %s: %s' % (what, error.getMessage()))
      return False
    self.ctx.write(text)
    return True

  # docs

  def emitDoc(self, doc, prefix='///'):
    if doc is None:
      return
    for line in doc.getText().split('\n'):
      self.ctx.writeln('%s %s' % (prefix, line) if line else prefix)

  def emit_FileDoc(self, item):
    self.emitDoc(item.doc, '//!' if self.ctx.isEmpty() else '//')
    self.ctx.writeln()

  # preprocessor

  def emit_Nothing(self, item):
    pass

  def emit_Ignored(self, item):
    self.logger.debug('ignoring `%s`' % (item.span.getString()))

  def emit_Include(self, include):
    path = include.path.getString()
    if not (path.startswith('SDL3/SDL_') and path.endswith('.h')):
      return
    module = path[len('SDL3/SDL_'):-len('.h')].lower()
    if module == self.ctx.module:
      return
    if self.ctx.knownModules is not None and module not in self.ctx.knownModules:
      self.logger.debug('not importing unknown module %s' % (module))
      return
    self.ctx.writeln('use super::%s::*;' % (module))
    self.ctx.writeln()

  def emit_Undef(self, undef):
    self.ctx.state.undefine(undef.ident)

  def emit_ErrorDirective(self, directive):
    raise ParseError(directive.span, '#error %s' % (directive.text.getString()))

  def emit_WarningDirective(self, directive):
    self.logger.warning('#warning %s' % (directive.text.getString()))

  def _liveBranch(self, block):
    while block is not None:
      if block.condExpr is None or self.ctx.state.evalCondition(block.condExpr):
        return block.block
      block = block.elseBlock
    return []

  def emit_PreProcBlock(self, block):
    self.emitItems(self._liveBranch(block))

  def emit_Define(self, define):
    self.ctx.state.define(define.ident, define.args, define.value)
    name = define.ident.getString()
    if define.isFunctionLike():
      self._soft('macro %s' % (name), lambda: self._emitMacro(define))
    else:
      self._soft('define %s' % (name), lambda: self._emitConstDefine(define))

  def _emitConstDefine(self, define):
    value = define.value
    name = define.ident.getString()
    if value.kind == DefineValue.TYPE:
      self._emitTypeAlias(define.ident, value.value, define.doc)
      return
    if value.kind != DefineValue.EXPR:
      self.logger.debug('not emitting %s define %s' % (value.kind, name))
      return
    expr = value.value
    folded = tryEval(expr)
    if folded is not None:
      ty = VALUE_TYPES[folded.kind]
      text = self._valueText(folded, expr)
    else:
      ty = self._inferType(expr)
      if ty is None:
        aliased = self._aliasedType(expr)
        if aliased is not None:
          self._emitTypeAlias(define.ident, aliased, define.doc)
        else:
          self.logger.debug("can't infer a type for define %s" % (name))
        return
      if ty == LITERAL_INT:
        ty = I32
      text = self.emitExpr(expr)
    define.ty.resolve(RustType(ty), define.span)
    self.emitDoc(define.doc)
    self.ctx.writeln('pub const %s: %s = %s;' % (rustIdent(name), ty, text))
    self.ctx.writeln()
    self.ctx.register(Sym(define.ident, Sym.CONST, ty=ty))
    if folded is not None and folded.kind == Value.STRING:
      self._recordStringConst(name, define.doc)

  def _recordStringConst(self, name, doc):
    metadata = self.ctx.metadata
    if name.startswith('SDL_HINT_'):
      metadata.hints.append(Hint(name, docText(doc)))
    elif name.startswith('SDL_PROP_'):
      ty = propertyType(name)
      if ty is None:
        self.logger.warning('unknown property type for %s, leaving it out of the metadata' % (name))
        return
      metadata.properties.append(Property(name, docText(doc), ty))

  def _aliasedType(self, expr):
    if not isinstance(expr, Ambiguous):
      return None
    for (kind, value) in expr.alternatives:
      if kind != 'type':
        continue
      if isinstance(value, IdentType):
        sym = self.ctx.lookup(value.ident)
        if sym is None or sym.kind not in (Sym.TYPE, Sym.STRUCT, Sym.ENUM):
          continue
      return value
    return None

  def _macroBody(self, value):
    if value.kind == DefineValue.ITEMS:
      return ('items', value.value)
    if value.kind != DefineValue.EXPR:
      return None
    if not isinstance(value.value, Ambiguous):
      return ('expr', value.value)
    exprs = value.value.exprs()
    if exprs:
      return ('expr', exprs[0])
    for (kind, alternative) in value.value.alternatives:
      if kind == 'items':
        return ('items', alternative)
    return None

  def _emitMacro(self, define):
    name = define.ident.getString()
    if any(arg.isVariadic() for arg in define.args):
      self.logger.debug('not emitting variadic macro %s' % (name))
      return
    body = self._macroBody(define.value)
    if body is None:
      self.logger.debug('not emitting %s macro %s' % (define.value.kind, name))
      return
    (kind, value) = body
    params = self._paramTypes(define)
    if params is not None and kind == 'expr' and self._emitConstFn(define, params, value):
      return
    ctx = self.ctx
    with ctx.subscope():
      for arg in define.args:
        ctx.register(Sym(arg.ident, Sym.ARG, ty=arg.ty))
      pattern = ', '.join('$%s:expr' % (arg.ident.getString()) for arg in define.args)
      self.emitDoc(define.doc)
      ctx.writeln('#[macro_export]')
      ctx.writeln('macro_rules! %s {' % (name))
      with ctx.indented():
        if kind == 'expr':
          ctx.writeln('(%s) => {' % (pattern))
          with ctx.indented():
            ctx.writeln(self.emitExpr(value))
          ctx.writeln('};')
        else:
          ctx.writeln('(%s) => {{' % (pattern))
          with ctx.indented():
            self.emitStatements(value)
          ctx.writeln('}};')
      ctx.writeln('}')
      ctx.writeln()
    ctx.register(Sym(define.ident, Sym.MACRO))

  def _paramTypes(self, define):
    """The argument types of a macro whose arguments all have known types, else None."""
    if not define.args:
      return None
    types = []
    for arg in define.args:
      ty = arg.ty
      if isinstance(ty, InferType):
        if not ty.isResolved():
          return None
        ty = ty.get()
      types.append(ty)
    return types

  def _emitConstFn(self, define, params, value):
    """Emit a typed macro as a `const fn`. Returns False if its result type is unknown."""
    ctx = self.ctx
    name = define.ident.getString()
    with ctx.subscope():
      for (arg, ty) in zip(define.args, params):
        ctx.register(Sym(arg.ident, Sym.PARAM, ty=ty))
      returnType = self._inferType(value)
      if returnType is None:
        self.logger.debug("can't infer a return type for %s, emitting it as a macro" % (name))
        return False
      if returnType == LITERAL_INT:
        returnType = I32
      signature = ', '.join('%s: %s' % (rustIdent(arg.ident), self._argType(ty)) for (arg, ty) in zip(define.args, params))
      body = self.emitExpr(value)
    unsafe = any(isinstance(ty, PointerType) for ty in params)
    self.emitDoc(define.doc)
    ctx.writeln('#[inline(always)]')
    ctx.writeln('pub const %sfn %s(%s) -> %s {' % ('unsafe ' if unsafe else '', rustIdent(name), signature, returnType))
    with ctx.indented():
      ctx.writeln(body)
    ctx.writeln('}')
    ctx.writeln()
    ctx.register(Sym(define.ident, Sym.FUNCTION, ty=FunctionType(define.args, None)))
    return True

  def _enumSym(self, ty):
    if not isinstance(ty, IdentType):
      return None
    sym = self.ctx.lookup(ty.ident)
    return sym if sym is not None and sym.kind == Sym.ENUM else None

  def _paramValueType(self, ty):
    """The Rust type a typed macro argument has where it is used as a value."""
    enum = self._enumSym(ty)
    if enum is not None:
      return enum.ty
    rustType = self.rustType(ty)
    return C_INT if rustType == BOOL else rustType

  def _valueText(self, value, expr):
    while isinstance(expr, Parenthesized):
      expr = expr.expr
    if value.kind == Value.U31:
      if isinstance(expr, LiteralExpr) and isinstance(expr.literal, IntegerLiteral):
        return integerDigits(expr.literal)
      return '%d' % (value.value)
    if value.kind in (Value.F32, Value.F64):
      text = rustFloat(value.value, value.kind.lower())
      if text is None:
        raise UnsupportedConstruct(expr.span, "can't emit non-finite float")
      return text
    if value.kind == Value.BOOL:
      return 'true' if value.value else 'false'
    return rustCString(value.value)

  # type inference for opaque constant expressions

  def _combineTypes(self, lhs, rhs):
    if lhs is None or rhs is None:
      return None
    if lhs == LITERAL_INT:
      return rhs
    if rhs == LITERAL_INT or lhs == rhs:
      return lhs
    return None

  def _inferType(self, expr):
    if isinstance(expr, Parenthesized):
      return self._inferType(expr.expr)
    if isinstance(expr, Ambiguous):
      for alternative in expr.exprs():
        ty = self._inferType(alternative)
        if ty is not None:
          return ty
      return None
    if isinstance(expr, LiteralExpr):
      return self._literalType(expr.literal)
    if expr.__class__.__name__ == 'BoolExpr':
      return BOOL
    if isinstance(expr, IdentExpr):
      sym = self.ctx.lookup(expr.ident)
      if sym is None:
        return None
      if sym.kind == Sym.CONST:
        return sym.ty
      if sym.kind == Sym.PARAM:
        return self._paramValueType(sym.ty)
      if sym.kind == Sym.VARIANT:
        return self.ctx.lookup(sym.parent).ty
      return None
    if isinstance(expr, UnaryOp):
      if expr.op.getString() in ('-', '+', '~'):
        return self._inferType(expr.expr)
      return None
    if isinstance(expr, BinaryOp):
      op = expr.op.getString()
      if op in BOOL_OPS:
        if self._inferType(expr.lhs) is None or self._inferType(expr.rhs) is None:
          return None
        return BOOL
      if op in SHIFT_OPS:
        return self._inferType(expr.lhs) if self._inferType(expr.rhs) is not None else None
      if op in ASSIGN_OPS or op == ',':
        return None
      return self._combineTypes(self._inferType(expr.lhs), self._inferType(expr.rhs))
    if isinstance(expr, Cast):
      return self.rustType(expr.ty)
    if isinstance(expr, Ternary):
      if self._inferType(expr.cond) is None:
        return None
      return self._combineTypes(self._inferType(expr.onTrue), self._inferType(expr.onFalse))
    return None

  def _literalType(self, literal):
    if isinstance(literal, IntegerLiteral):
      if literal.kind == IntegerKind.UNSUFFIXED:
        if literal.value <= 0x7fffffff:
          return LITERAL_INT
        return U32 if literal.value <= 0xffffffff else U64
      return {
        IntegerKind.UNSIGNED: U32,
        IntegerKind.LONG: C_LONG,
        IntegerKind.UNSIGNED_LONG: C_ULONG,
        IntegerKind.LONG_LONG: I64,
        IntegerKind.UNSIGNED_LONG_LONG: U64
      }[literal.kind]
    if isinstance(literal, FloatLiteral):
      return F32 if literal.kind == FloatLiteral.F32 else F64
    return C_STRING

  # types

  def rustType(self, ty):
    if isinstance(ty, PrimitiveType):
      return PRIMITIVES[ty.name]
    if isinstance(ty, IdentType):
      return rustIdent(ty.ident)
    if isinstance(ty, StructType):
      if ty.struct.ident is None:
        raise UnsupportedConstruct(ty.span, 'anonymous %s type' % (ty.struct.kind))
      return rustIdent(ty.struct.ident)
    if isinstance(ty, EnumType):
      if ty.enum.ident is None:
        return self.rustType(ty.enum.baseType)
      return rustIdent(ty.enum.ident)
    if isinstance(ty, PointerType):
      inner = ty.inner
      if isinstance(inner, FnPointerType):
        return self.rustType(inner)
      return '%s %s' % ('*const' if inner.isConst else '*mut', self.rustType(inner))
    if isinstance(ty, ArrayType):
      return '[%s; %s]' % (self.rustType(ty.element), self._arraySize(ty.size))
    if isinstance(ty, FnPointerType):
      return '::core::option::Option<%s>' % (self._fnSignature('unsafe extern "C" fn', None, ty.args, ty.returnType))
    if isinstance(ty, RustType):
      return ty.string
    if isinstance(ty, InferType) and ty.isResolved():
      return self.rustType(ty.get())
    raise UnsupportedConstruct(ty.getSpan(), "can't emit this type")

  def _arraySize(self, size):
    value = tryEval(size)
    if value is not None and value.kind == Value.U31:
      return '%d' % (value.value)
    return '%s as ::core::primitive::usize' % (self._operand(size))

  def _argType(self, ty):
    if isinstance(ty, ArrayType):
      # array arguments decay to pointers
      return '%s %s' % ('*const' if ty.element.isConst else '*mut', self.rustType(ty.element))
    return self.rustType(ty)

  def _returnType(self, ty):
    if ty.isVoid():
      return ''
    return ' -> %s' % (self.rustType(ty))

  def _fnSignature(self, head, name, args, returnType, named=False):
    params = []
    for (index, arg) in enumerate(args):
      if isinstance(arg.ty, DotDotDotType):
        params.append('...')
      elif named:
        argName = rustIdent(arg.ident) if arg.ident is not None else 'arg%d' % (index)
        params.append('%s: %s' % (argName, self._argType(arg.ty)))
      else:
        params.append(self._argType(arg.ty))
    signature = '%s%s(%s)' % (head, ' %s' % (name) if name else '', ', '.join(params))
    return signature + self._returnType(returnType)

  def _typeTraits(self, ty):
    """(can derive Copy, can derive Debug) for a field of type ty."""
    if isinstance(ty, ArrayType):
      return self._typeTraits(ty.element)
    if isinstance(ty, RustType):
      return (ty.canCopy, ty.canDebug)
    name = None
    if isinstance(ty, IdentType):
      name = ty.ident
    elif isinstance(ty, StructType):
      name = ty.struct.ident
    elif isinstance(ty, EnumType):
      name = ty.enum.ident
    if name is None:
      return (True, True)
    sym = self.ctx.lookup(name)
    if sym is None:
      return (True, True)
    return (sym.canCopy, sym.canDebug)

  def _emitNestedTypes(self, ty):
    if isinstance(ty, StructType):
      struct = ty.struct
      if struct.fields is not None and struct.ident is not None and struct.ident.getString() not in self.ctx.emittedTypes:
        self._emitStruct(struct, struct.doc)
    elif isinstance(ty, EnumType):
      enum = ty.enum
      if enum.ident is not None and enum.ident.getString() not in self.ctx.emittedTypes:
        self._emitEnum(enum, enum.ident, enum.doc)
    elif isinstance(ty, PointerType):
      self._emitNestedTypes(ty.inner)
    elif isinstance(ty, ArrayType):
      self._emitNestedTypes(ty.element)
    elif isinstance(ty, FnPointerType):
      self._emitNestedTypes(ty.returnType)
      for arg in ty.args:
        self._emitNestedTypes(arg.ty)

  def _emitTypeAlias(self, ident, ty, doc):
    self._emitNestedTypes(ty)
    (canCopy, canDebug) = self._typeTraits(ty)
    self.emitDoc(doc)
    self.ctx.writeln('pub type %s = %s;' % (rustIdent(ident), self.rustType(ty)))
    self.ctx.writeln()
    self.ctx.register(Sym(ident, Sym.TYPE, ty=ty, canCopy=canCopy, canDebug=canDebug))
    self.ctx.emittedTypes.add(ident.getString())

  # structs and unions

  def emit_StructOrUnion(self, struct):
    if struct.fields is None:
      self._emitOpaqueStruct(struct.ident, struct.doc)
    else:
      self._emitStruct(struct, struct.doc)

  def _emitOpaqueStruct(self, ident, doc):
    name = ident.getString()
    if name in self.ctx.definedStructs or name in self.ctx.emittedTypes:
      return
    ctx = self.ctx
    self.emitDoc(doc)
    ctx.writeln('#[repr(C)]')
    ctx.writeln('pub struct %s {' % (rustIdent(name)))
    with ctx.indented():
      ctx.writeln('_opaque: [::core::primitive::u8; 0],')
    ctx.writeln('}')
    ctx.writeln()
    ctx.register(Sym(ident, Sym.STRUCT, canCopy=False, canDebug=False))
    ctx.emittedTypes.add(name)

  def _emitStruct(self, struct, doc):
    ctx = self.ctx
    if struct.ident is None:
      raise UnsupportedConstruct(struct.span, 'anonymous %s' % (struct.kind))
    name = struct.ident.getString()
    if name in ctx.emittedTypes:
      self.logger.debug('%s %s already emitted' % (struct.kind, name))
      return
    ctx.emittedTypes.add(name)
    for field in struct.fields:
      self._emitNestedTypes(field.ty)

    canCopy = struct.canCopy != CanCopy.NEVER
    canDebug = struct.isStruct()
    fields = []
    for field in struct.fields:
      (fieldCopy, fieldDebug) = self._typeTraits(field.ty)
      canCopy = canCopy and fieldCopy
      canDebug = canDebug and fieldDebug
      fields.append((field, self.rustType(field.ty)))

    derives = []
    if canCopy:
      derives.extend(['Clone', 'Copy'])
    if canDebug:
      derives.append('Debug')

    self.emitDoc(doc)
    ctx.writeln('#[repr(C)]')
    if derives:
      ctx.writeln('#[derive(%s)]' % (', '.join(derives)))
    ctx.writeln('pub %s %s {' % (struct.kind, rustIdent(name)))
    with ctx.indented():
      for (field, ty) in fields:
        self.emitDoc(field.doc)
        ctx.writeln('pub %s: %s,' % (rustIdent(field.ident), ty))
    ctx.writeln('}')
    ctx.writeln()

    if struct.canConstruct:
      ctx.writeln('impl ::core::default::Default for %s {' % (rustIdent(name)))
      with ctx.indented():
        ctx.writeln('/// Initialize all fields to zero')
        ctx.writeln('#[inline(always)]')
        ctx.writeln('fn default() -> Self {')
        with ctx.indented():
          ctx.writeln('unsafe { ::core::mem::MaybeUninit::<Self>::zeroed().assume_init() }')
        ctx.writeln('}')
      ctx.writeln('}')
      ctx.writeln()

    ctx.register(Sym(struct.ident, Sym.STRUCT, canCopy=canCopy, canDebug=canDebug))

  # enums

  def emit_Enum(self, enum):
    self._emitEnum(enum, enum.ident, enum.doc)

  def _enumValue(self, expr, baseType):
    value = tryEval(expr)
    if value is not None and value.kind == Value.U31:
      return 'Self(%s)' % (self._valueText(value, expr))
    return 'Self((%s) as %s)' % (self.emitExpr(expr), baseType)

  def _emitEnum(self, enum, ident, doc):
    ctx = self.ctx
    state = ctx.state
    variants = [variant for variant in enum.variants if variant.cond.isSatisfied(state)]
    baseType = self.rustType(enum.baseType)

    if ident is None:
      # anonymous enums only declare constants
      nextExpr = LiteralExpr(IntegerLiteral.zero())
      for variant in variants:
        expr = variant.expr if variant.expr is not None else nextExpr
        value = tryEval(expr)
        text = self._valueText(value, expr) if value is not None and value.kind == Value.U31 else \
               '(%s) as %s' % (self.emitExpr(expr), baseType)
        self.emitDoc(variant.doc)
        ctx.writeln('pub const %s: %s = %s;' % (rustIdent(variant.ident), baseType, text))
        ctx.register(Sym(variant.ident, Sym.CONST, ty=baseType))
        nextExpr = plusOne(expr)
      ctx.writeln()
      return

    name = ident.getString()
    if isHiddenEnum(ctx.module, name):
      self.logger.debug('not emitting hidden enum %s' % (name))
      return
    patched = enumBaseType(ctx.module, name)
    if patched is not None:
      baseType = self.rustType(patched)
    ctx.emittedTypes.add(name)
    ctx.register(Sym(ident, Sym.ENUM, ty=baseType))
    prefix = commonIdentPrefix([variant.ident.getString() for variant in variants])

    def emitAssociatedConsts():
      nextExpr = LiteralExpr(IntegerLiteral.zero())
      for variant in variants:
        expr = variant.expr if variant.expr is not None else nextExpr
        try:
          text = self._enumValue(expr, baseType)
        except UnsupportedConstruct:
          raise ParseError(variant.ident.span, "couldn't evaluate value for enum")
        shortName = variant.ident.getString()[len(prefix):]
        self.emitDoc(variant.doc)
        ctx.writeln('pub const %s: Self = %s;' % (rustIdent(shortName), text))
        ctx.register(Sym(variant.ident, Sym.VARIANT, ty=baseType, parent=ident, shortName=shortName))
        nextExpr = plusOne(expr)

    savedEnum = ctx.currentEnum
    ctx.currentEnum = name
    try:
      consts = ctx.captureOutput(emitAssociatedConsts)
    finally:
      ctx.currentEnum = savedEnum

    self.emitDoc(doc)
    ctx.writeln('#[repr(transparent)]')
    ctx.writeln('#[derive(Clone, Copy, Default, PartialEq, Eq, Hash, Debug)]')
    ctx.writeln('pub struct %s(pub %s);' % (rustIdent(name), baseType))
    ctx.writeln()
    if variants:
      ctx.writeln('impl %s {' % (rustIdent(name)))
      with ctx.indented():
        ctx.write(consts)
      ctx.writeln('}')
      ctx.writeln()
      for variant in variants:
        shortName = variant.ident.getString()[len(prefix):]
        self.emitDoc(variant.doc)
        ctx.writeln('pub const %s: %s = %s::%s;' % (rustIdent(variant.ident), rustIdent(name), rustIdent(name), rustIdent(shortName)))
      ctx.writeln()
    values = [GroupValue(variant.ident.getString(), variant.ident.getString()[len(prefix):], docText(variant.doc)) for variant in variants]
    ctx.metadata.groups.append(Group(Group.ENUM, name, docText(doc), values))

  # typedefs and functions

  def emit_TypeDef(self, typedef):
    ctx = self.ctx
    ident = typedef.ident
    name = ident.getString()
    ty = typedef.ty
    if isinstance(ty, EnumType):
      enum = ty.enum
      self._emitEnum(enum, ident, typedef.doc or enum.doc)
      if enum.ident is not None and enum.ident != ident:
        ctx.writeln('pub type %s = %s;' % (rustIdent(enum.ident), rustIdent(name)))
        ctx.writeln()
      return
    if isinstance(ty, StructType):
      struct = ty.struct
      if struct.fields is not None:
        self._emitStruct(struct, typedef.doc or struct.doc)
        if struct.ident != ident:
          self._emitTypeAlias(ident, ty, None)
        return
      if struct.ident == ident:
        self._emitOpaqueStruct(ident, typedef.doc)
        return
      self._emitOpaqueStruct(struct.ident, None)
      self._emitTypeAlias(ident, ty, typedef.doc)
      return
    self._emitTypeAlias(ident, ty, typedef.doc)

  def emit_Function(self, function):
    name = rustIdent(function.ident)
    if isSkippedFunction(function.ident.getString()):
      self.logger.debug('not emitting %s' % (name))
      return
    if function.body is not None:
      # bodies are only parsed here, so their syntax errors are soft too
      self._soft('inline function %s' % (name), lambda: self._emitInlineFunction(function), ParseError)
      return
    if function.static:
      self.logger.debug('not emitting static prototype %s' % (name))
      return
    ctx = self.ctx
    ctx.writeln('extern "C" {')
    with ctx.indented():
      self.emitDoc(function.doc)
      ctx.writeln('pub %s;' % (self._fnSignature('fn', name, function.args, function.returnType, named=True)))
    ctx.writeln('}')
    ctx.writeln()
    ctx.register(Sym(function.ident, Sym.FUNCTION, ty=FunctionType(function.args, function.returnType)))

  def _emitInlineFunction(self, function):
    from sdlgen.Item import ITEMS
    ctx = self.ctx
    items = ITEMS.tryParseAll(ParseContext(ctx.module), function.body.trimWsc())
    with ctx.subscope():
      for arg in function.args:
        if arg.ident is not None:
          ctx.register(Sym(arg.ident, Sym.LOCAL, ty=arg.ty))
      self.emitDoc(function.doc)
      ctx.writeln('#[inline(always)]')
      ctx.writeln('pub unsafe %s {' % (self._fnSignature('fn', rustIdent(function.ident), function.args, function.returnType, named=True)))
      with ctx.indented():
        self.emitStatements(items or [])
      ctx.writeln('}')
      ctx.writeln()
    ctx.register(Sym(function.ident, Sym.FUNCTION, ty=FunctionType(function.args, function.returnType)))

  def emit_VarDecl(self, decl):
    ctx = self.ctx
    if decl.init is not None:
      raise UnsupportedConstruct(decl.span, 'initialized global variable')
    ctx.writeln('extern "C" {')
    with ctx.indented():
      ctx.writeln('pub static%s %s: %s;' % ('' if decl.ty.isConst else ' mut', rustIdent(decl.ident), self.rustType(decl.ty)))
    ctx.writeln('}')
    ctx.writeln()
    ctx.register(Sym(decl.ident, Sym.CONST, ty=self.rustType(decl.ty)))

  # statements

  def emitStatements(self, items):
    for item in items:
      self.emitStatement(item)

  def emitStatement(self, item):
    action = self.statementActions.get(item.__class__.__name__)
    if action is None:
      raise UnsupportedConstruct(item.span, "can't emit %s as a statement" % (item.__class__.__name__))
    action(item)

  def _emitBlockBody(self, block):
    with self.ctx.indented():
      with self.ctx.subscope():
        self.emitStatements(block.items)

  def stmt_Block(self, block):
    self.ctx.writeln('{')
    self._emitBlockBody(block)
    self.ctx.writeln('}')

  def stmt_DoWhile(self, loop):
    ctx = self.ctx
    # the flag makes the body run once before the condition is checked
    ctx.writeln('{')
    with ctx.indented():
      ctx.writeln('let mut __sdlgen_first = true;')
      ctx.writeln('while ::core::mem::replace(&mut __sdlgen_first, false) || %s {' % (self._condition(loop.cond, True)))
      self._emitBlockBody(loop.block)
      ctx.writeln('}')
    ctx.writeln('}')

  def stmt_While(self, loop):
    self.ctx.writeln('while %s {' % (self._condition(loop.cond)))
    self._emitBlockBody(loop.block)
    self.ctx.writeln('}')

  def stmt_IfElse(self, stmt):
    ctx = self.ctx
    ctx.writeln('if %s {' % (self._condition(stmt.cond)))
    self._emitBlockBody(stmt.onTrue)
    if stmt.onFalse is not None:
      ctx.writeln('} else {')
      self._emitBlockBody(stmt.onFalse)
    ctx.writeln('}')

  def stmt_Return(self, stmt):
    if stmt.expr is None:
      self.ctx.writeln('return;')
    else:
      self.ctx.writeln('return %s;' % (self.emitExpr(stmt.expr)))

  def stmt_Break(self, stmt):
    self.ctx.writeln('break;')

  def stmt_Continue(self, stmt):
    self.ctx.writeln('continue;')

  def stmt_VarDecl(self, decl):
    ty = self.rustType(decl.ty)
    if decl.init is None:
      self.ctx.writeln('let mut %s: %s;' % (rustIdent(decl.ident), ty))
    else:
      self.ctx.writeln('let mut %s: %s = %s;' % (rustIdent(decl.ident), ty, self.emitExpr(decl.init)))
    self.ctx.register(Sym(decl.ident, Sym.LOCAL, ty=decl.ty))

  def stmt_ExprItem(self, stmt):
    expr = stmt.expr
    if isinstance(expr, (PostOp, UnaryOp)) and expr.op.getString() in ('++', '--'):
      self.ctx.writeln('%s %s= 1;' % (self.emitExpr(expr.expr), expr.op.getString()[0]))
    elif isinstance(expr, Cast) and expr.ty.isVoid():
      self.ctx.writeln('let _ = %s;' % (self.emitExpr(expr.expr)))
    else:
      self.ctx.writeln('%s;' % (self.emitExpr(expr)))

  def stmt_FnCallItem(self, stmt):
    self.ctx.writeln('%s;' % (self.emitExpr(stmt.call)))

  def stmt_PreProcBlock(self, block):
    self.emitStatements(self._liveBranch(block))

  # expressions

  def emitExpr(self, expr):
    action = self.exprActions.get(expr.__class__.__name__)
    if action is None:
      raise UnsupportedConstruct(expr.getSpan(), "can't emit this expression")
    return action(expr)

  def _operand(self, expr):
    text = self.emitExpr(expr)
    if isinstance(expr, (BinaryOp, Ternary)):
      return '(%s)' % (text)
    return text

  def _isBool(self, expr):
    while isinstance(expr, Parenthesized):
      expr = expr.expr
    if expr.__class__.__name__ == 'BoolExpr':
      return True
    if isinstance(expr, BinaryOp):
      return expr.op.getString() in BOOL_OPS
    if isinstance(expr, UnaryOp):
      return expr.op.getString() == '!'
    return False

  def _condition(self, expr, nested=False):
    """expr as a Rust `bool`. C conditions compare against zero."""
    if self._isBool(expr):
      return self._operand(expr) if nested else self.emitExpr(expr)
    return '(%s != 0)' % (self.emitExpr(expr))

  def expr_Parenthesized(self, expr):
    return '(%s)' % (self.emitExpr(expr.expr))

  def expr_IdentExpr(self, expr):
    name = expr.ident.getString()
    sym = self.ctx.lookup(name)
    if sym is None:
      if name == 'NULL':
        return '::core::ptr::null_mut()'
      return rustIdent(name)
    if sym.kind == Sym.ARG:
      return '$%s' % (name)
    if sym.kind == Sym.PARAM:
      if self._enumSym(sym.ty) is not None:
        return '%s.0' % (rustIdent(name))
      if self.rustType(sym.ty) == BOOL:
        return '(%s as %s)' % (rustIdent(name), C_INT)
      return rustIdent(name)
    if sym.kind == Sym.VARIANT:
      if self.ctx.currentEnum == sym.parent.getString():
        return 'Self::%s.0' % (rustIdent(sym.shortName))
      return '%s.0' % (rustIdent(name))
    return rustIdent(name)

  def expr_LiteralExpr(self, expr):
    literal = expr.literal
    if isinstance(literal, IntegerLiteral):
      digits = integerDigits(literal)
      if literal.kind == IntegerKind.UNSUFFIXED:
        # rust would take these as i32 and reject them
        if literal.value > 0xffffffff:
          return '%s_u64' % (digits)
        if literal.value > 0x7fffffff:
          return '%s_u32' % (digits)
        return digits
      if literal.kind == IntegerKind.LONG:
        return '(%s as %s)' % (digits, C_LONG)
      if literal.kind == IntegerKind.UNSIGNED_LONG:
        return '(%s as %s)' % (digits, C_ULONG)
      suffix = {
        IntegerKind.UNSIGNED: 'u32',
        IntegerKind.LONG_LONG: 'i64',
        IntegerKind.UNSIGNED_LONG_LONG: 'u64'
      }[literal.kind]
      return '%s_%s' % (digits, suffix)
    if isinstance(literal, FloatLiteral):
      text = rustFloat(literal.value, literal.kind)
      if text is None:
        raise UnsupportedConstruct(expr.span, "can't emit non-finite float")
      return text
    if isinstance(literal, StringLiteral):
      return rustCString(literal.value)
    raise UnsupportedConstruct(expr.span, "can't emit this literal")

  def expr_BoolExpr(self, expr):
    return 'true' if expr.value else 'false'

  def expr_FnCall(self, expr):
    args = ', '.join(self.emitExpr(arg) for arg in expr.args)
    name = expr.getName()
    if name is not None:
      sym = self.ctx.lookup(name)
      if sym is not None and sym.kind == Sym.MACRO:
        return '%s!(%s)' % (name, args)
      if sym is not None and sym.kind == Sym.FUNCTION:
        params = sym.ty.args
        if not any(isinstance(param.ty, DotDotDotType) for param in params) and len(params) != len(expr.args):
          raise UnsupportedConstruct(expr.span, 'wrong number of arguments for `%s`' % (name))
    return '%s(%s)' % (self._operand(expr.func), args)

  def expr_Cast(self, expr):
    if expr.ty.isVoid():
      raise UnsupportedConstruct(expr.span, 'cast to void in an expression')
    enum = self._enumSym(expr.ty)
    if enum is not None:
      return '%s((%s) as %s)' % (self.rustType(expr.ty), self.emitExpr(expr.expr), enum.ty)
    target = self.rustType(expr.ty)
    if target == BOOL and not self._isBool(expr.expr):
      return self._condition(expr.expr)
    return '(%s as %s)' % (self._operand(expr.expr), target)

  def expr_SizeOf(self, expr):
    if expr.ty is not None:
      return '::core::mem::size_of::<%s>()' % (self.rustType(expr.ty))
    return '::core::mem::size_of_val(&%s)' % (self._operand(expr.expr))

  def expr_UnaryOp(self, expr):
    op = expr.op.getString()
    if op == '+':
      return self._operand(expr.expr)
    if op == '-':
      return '-%s' % (self._operand(expr.expr))
    if op == '~':
      return '!%s' % (self._operand(expr.expr))
    if op == '!':
      if self._isBool(expr.expr):
        return '!%s' % (self._condition(expr.expr, True))
      return '(%s == 0)' % (self.emitExpr(expr.expr))
    if op == '*':
      return '(*%s)' % (self._operand(expr.expr))
    if op == '&':
      return '::core::ptr::addr_of_mut!(%s)' % (self.emitExpr(expr.expr))
    raise UnsupportedConstruct(expr.op.span, "can't emit `%s` in an expression" % (op))

  def expr_BinaryOp(self, expr):
    op = expr.op.getString()
    if op == ',':
      raise UnsupportedConstruct(expr.op.span, "can't emit the comma operator")
    if op in ('&&', '||'):
      return '%s %s %s' % (self._condition(expr.lhs, True), op, self._condition(expr.rhs, True))
    return '%s %s %s' % (self._operand(expr.lhs), op, self._operand(expr.rhs))

  def expr_Ternary(self, expr):
    return 'if %s { %s } else { %s }' % (self._condition(expr.cond), self.emitExpr(expr.onTrue), self.emitExpr(expr.onFalse))

  def expr_ArrayIndex(self, expr):
    return '(*%s.offset((%s) as ::core::primitive::isize))' % (self._operand(expr.expr), self.emitExpr(expr.index))

  def expr_MemberAccess(self, expr):
    if expr.op.getString() == '->':
      return '(*%s).%s' % (self._operand(expr.expr), rustIdent(expr.member))
    return '%s.%s' % (self._operand(expr.expr), rustIdent(expr.member))

  def expr_Ambiguous(self, expr):
    exprs = expr.exprs()
    if not exprs:
      raise UnsupportedConstruct(expr.span, "can't emit this as an expression")
    return self.emitExpr(exprs[0])

def emitModule(module, items, knownModules=None):
  """Emit one module's items with a fresh context, returning (Rust source, Metadata)."""
  ctx = EmitContext(module, knownModules=knownModules)
  text = Emitter(ctx).emit(items)
  return (text, ctx.metadata)

def emitItems(module, items, knownModules=None):
  (text, metadata) = emitModule(module, items, knownModules)
  return text
