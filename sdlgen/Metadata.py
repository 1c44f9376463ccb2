import re

INDENT = '    '

PROPERTY_TYPE_SUFFIXES = ['POINTER', 'STRING', 'NUMBER', 'FLOAT', 'BOOLEAN']

# properties whose names don't end in their type
PROPERTY_TYPES = {
  'SDL_PROP_GPU_TEXTURE_CREATE_D3D12_CLEAR_STENCIL_UINT8': 'NUMBER',
  'SDL_PROP_WINDOW_OPENVR_OVERLAY_ID': 'NUMBER'
}

AVAILABLE_SINCE = re.compile(r'available since \S+ (\d+)\.(\d+)\.(\d+)')

def propertyType(name):
  for suffix in PROPERTY_TYPE_SUFFIXES:
    if name.endswith('_%s' % (suffix)):
      return suffix
  return PROPERTY_TYPES.get(name)

def rustStr(string):
  chars = []
  for char in string:
    if char == '\\':
      chars.append('\\\\')
    elif char == '"':
      chars.append('\\"')
    elif char == '\n':
      chars.append('\\n')
    elif char == '\r':
      chars.append('\\r')
    elif char == '\t':
      chars.append('\\t')
    elif ord(char) < 0x20 or ord(char) == 0x7f:
      chars.append('\\u{%x}' % (ord(char)))
    else:
      chars.append(char)
  return '"%s"' % (''.join(chars))

def optionalStr(string):
  return 'Some(%s)' % (rustStr(string)) if string else 'None'

def availableSince(doc):
  """
  `Some(SDL_VERSIONNUM(x, y, z))` from a doc's `\\since` line or the line after
  its `# Availability` header, else `None`.
  """
  lines = doc.split('\n')
  for (index, line) in enumerate(lines):
    if '\\since' in line or (index > 0 and '# Availability' in lines[index - 1]):
      match = AVAILABLE_SINCE.search(line)
      if match:
        return 'Some(SDL_VERSIONNUM(%s, %s, %s))' % match.groups()
  return 'None'

class Hint:
  def __init__(self, name, doc):
    self.name = name
    self.doc = doc

class Property:
  def __init__(self, name, doc, ty):
    self.name = name
    self.doc = doc
    self.ty = ty

class GroupValue:
  def __init__(self, name, shortName, doc):
    self.name = name
    self.shortName = shortName
    self.doc = doc

class Group:
  ENUM = 'Enum'

  def __init__(self, kind, name, doc, values):
    self.kind = kind
    self.name = name
    self.doc = doc
    self.values = values

class Metadata:
  """Hints, properties and enum groups collected while emitting one module."""

  def __init__(self):
    self.hints = []
    self.properties = []
    self.groups = []

def _stripPrefix(name, prefix):
  return name[len(prefix):] if name.startswith(prefix) else name

def renderModule(module, metadata, symPrefix='SDL_'):
  lines = ['//! Metadata for items in the `crate::%s` module' % (module), '', 'use super::*;', '']
  for hint in metadata.hints:
    lines.extend([
      'pub const METADATA_%s: Hint = Hint {' % (hint.name),
      '%smodule: %s,' % (INDENT, rustStr(module)),
      '%sname: %s,' % (INDENT, rustStr(hint.name)),
      '%sshort_name: %s,' % (INDENT, rustStr(_stripPrefix(hint.name, '%sHINT_' % (symPrefix)))),
      '%svalue: crate::%s::%s,' % (INDENT, module, hint.name),
      '%sdoc: %s,' % (INDENT, optionalStr(hint.doc)),
      '%savailable_since: %s,' % (INDENT, availableSince(hint.doc)),
      '};',
      ''
    ])
  for prop in metadata.properties:
    lines.extend([
      'pub const METADATA_%s: Property = Property {' % (prop.name),
      '%smodule: %s,' % (INDENT, rustStr(module)),
      '%sname: %s,' % (INDENT, rustStr(prop.name)),
      '%sshort_name: %s,' % (INDENT, rustStr(_stripPrefix(prop.name, '%sPROP_' % (symPrefix)))),
      '%svalue: crate::%s::%s,' % (INDENT, module, prop.name),
      '%sty: PropertyType::%s,' % (INDENT, prop.ty),
      '%sdoc: %s,' % (INDENT, optionalStr(prop.doc)),
      '%savailable_since: %s,' % (INDENT, availableSince(prop.doc)),
      '};',
      ''
    ])
  for group in metadata.groups:
    lines.extend([
      'pub const METADATA_%s: Group = Group {' % (group.name),
      '%smodule: %s,' % (INDENT, rustStr(module)),
      '%skind: GroupKind::%s,' % (INDENT, group.kind),
      '%sname: %s,' % (INDENT, rustStr(group.name)),
      '%sshort_name: %s,' % (INDENT, rustStr(_stripPrefix(group.name, symPrefix))),
      '%sdoc: %s,' % (INDENT, optionalStr(group.doc)),
      '%savailable_since: %s,' % (INDENT, availableSince(group.doc)),
      '%svalues: &[' % (INDENT)
    ])
    for value in group.values:
      lines.extend([
        '%sGroupValue {' % (INDENT * 2),
        '%sname: %s,' % (INDENT * 3, rustStr(value.name)),
        '%sshort_name: %s,' % (INDENT * 3, rustStr(value.shortName)),
        '%sdoc: %s,' % (INDENT * 3, optionalStr(value.doc)),
        '%savailable_since: %s,' % (INDENT * 3, availableSince(value.doc)),
        '%s},' % (INDENT * 2)
      ])
    lines.extend(['%s],' % (INDENT), '};', ''])
  return '\n'.join(lines).rstrip('\n') + '\n'

def renderIndex(metadataByModule):
  """The `mod.rs` listing every module's metadata in HINTS, PROPERTIES and GROUPS."""
  lines = [
    '#![allow(non_upper_case_globals, unused)]',
    '',
    'use core::ffi::CStr;',
    'use sdl3_sys::{metadata::{Group, GroupKind, GroupValue, Hint, Property, PropertyType}, version::SDL_VERSIONNUM};',
    ''
  ]
  for module in metadataByModule:
    lines.append('pub mod %s;' % (module))
  lists = [
    ('hint constants', 'HINTS', 'Hint', lambda metadata: metadata.hints),
    ('property constants', 'PROPERTIES', 'Property', lambda metadata: metadata.properties),
    ('groups', 'GROUPS', 'Group', lambda metadata: metadata.groups)
  ]
  for (what, name, ty, entries) in lists:
    lines.extend(['', '/// Metadata for %s in this crate' % (what), 'pub const %s: &[&%s] = &[' % (name, ty)])
    for (module, metadata) in metadataByModule.items():
      for entry in entries(metadata):
        lines.append('%s&%s::METADATA_%s,' % (INDENT, module, entry.name))
    lines.append('];')
  return '\n'.join(lines) + '\n'
