import sys, os, argparse
from sdlgen.ParseError import ParseError
from sdlgen.Driver import Driver, moduleName, readSource, parseSource
from sdlgen.ItemPrinter import ItemPrettyPrintable
from sdlgen.Theme import create as createTheme
from sdlgen.Logger import Factory as LoggerFactory

def reportFailures(failures, theme):
  for (module, error) in failures:
    sys.stderr.write('%s: %s\n' % (module, error.render(theme)))

def addArguments(parser):
  parser.add_argument('path',
              metavar = 'PATH',
              help = 'Header directory (parse, generate) or header file (dump)')

  parser.add_argument('-d', '--debug',
              action='store_true',
              help = 'Writes debug information')

  parser.add_argument('-c', '--color',
              action='store_true',
              help = 'Colorize diagnostics and output.')

  parser.add_argument('-o', '--output',
              default = 'out',
              help = 'Directory to write generated modules to.')

  parser.add_argument('-m', '--module',
              action = 'append',
              default = [],
              help = 'Only process this module (e.g. `video`). May be repeated.')

def Cli():
  parser = argparse.ArgumentParser(description = 'sdlgen: SDL3 header parser and Rust binding generator')
  commands = dict()
  subparsers = parser.add_subparsers(help='Available actions', dest='command')
  commands['parse'] = subparsers.add_parser('parse', help='Parse every SDL header in a directory.')
  commands['generate'] = subparsers.add_parser('generate', help='Parse SDL headers and write one Rust module per header.')
  commands['dump'] = subparsers.add_parser('dump', help='Print the parsed items of one header.')

  for command in commands.values():
    addArguments(command)

  cli = parser.parse_args()
  if cli.command is None:
    parser.print_help()
    sys.exit(-1)

  LoggerFactory().initialize(cli.debug, cli.color)
  logger = LoggerFactory().getProgramLogger()
  theme = createTheme(cli.color)

  if cli.command == 'dump':
    if not os.path.isfile(cli.path):
      sys.stderr.write("Error: header file does not exist\n")
      sys.exit(-1)
    module = moduleName(os.path.basename(cli.path)) or os.path.basename(cli.path)
    try:
      items = parseSource(module, readSource(cli.path), cli.debug)
    except ParseError as error:
      sys.stderr.write('%s\n' % (error.render(theme)))
      sys.exit(-1)
    print(ItemPrettyPrintable(items, theme))
    return

  if not os.path.isdir(cli.path):
    sys.stderr.write("Error: header directory does not exist\n")
    sys.exit(-1)

  driver = Driver(cli.debug)
  (parsed, failures) = driver.parseDirectory(cli.path, cli.module)

  if cli.command == 'parse':
    reportFailures(failures, theme)
    logger.info('parsed %d modules, %d failed' % (len(parsed), len(failures)))
    if failures:
      sys.exit(-1)
    return

  if cli.command == 'generate':
    (outputs, emitFailures) = driver.emitModules(parsed)
    failures.extend(emitFailures)
    for path in driver.writeModules(outputs, cli.output) + driver.writeMetadata(cli.output):
      logger.debug('wrote %s' % (path))
    reportFailures(failures, theme)
    logger.info('generated %d modules, %d failed' % (len(outputs), len(failures)))
    if failures:
      sys.exit(-1)

if __name__ == '__main__':
    Cli()
