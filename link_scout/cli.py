# === FILE: link_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска LinkScout через командную строку.

Использование:
  link-scout SEED_URL [OPTIONS]

Опции обхода:
  --config PATH         Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --workers INT         Число параллельных воркеров
  --max-pages INT       Макс. число страниц (предохранитель)
  --timeout SEC         Таймаут одного запроса
  --crawl-timeout SEC   Таймаут всего обхода

Вывод:
  --output-dir DIR      Папка для links_by_page.json и all_links.json
  --stdout              Печатать JSON в stdout вместо файлов
  --pretty              Преформатировать JSON-вывод (отступ 2)
  --html PATH           Дополнительно сохранить HTML-отчёт
  --template DIR        Папка с Jinja2-шаблоном report.html.j2

Логирование:
  --log-level LEVEL     Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH       Файл для логов (только stderr, если не указан)
  --log-format FORMAT   Формат логирования

Пример:
  link-scout https://example.com --workers 16 --output-dir reports --pretty
"""
import sys
from pathlib import Path

import click

from link_scout import __version__
from link_scout.crawler.normalizer import normalize
from link_scout.engine import Engine
from link_scout.errors import LinkScoutError, MalformedURL
from link_scout.logger import DEFAULT_FORMAT, init_logging
from link_scout.report import JsonFileSink, JsonStreamSink
from link_scout.report.html_report import render_html

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def validate_seed(ctx, param, value: str) -> str:
    """Проверяет, что seed имеет вид scheme://host[...] со схемой http/https."""
    try:
        normalize(value)
    except MalformedURL as exc:
        raise click.BadParameter(f"некорректный seed URL ({exc.reason})")
    return value.strip()


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkScout, version %(version)s')
@click.argument('seed', callback=validate_seed)
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option('--workers', '-w', type=click.IntRange(min=1), default=None,
              help='Число параллельных воркеров (override workers)')
@click.option('--max-pages', '-l', 'max_pages', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц (override max_pages)')
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Таймаут одного запроса, секунд (override timeout)')
@click.option('--crawl-timeout', 'crawl_timeout', type=click.FloatRange(min=0, min_open=True),
              default=None, help='Таймаут всего обхода, секунд')
@click.option(
    '--output-dir', '-o', 'output_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Папка для JSON-отчётов'
)
@click.option('--stdout', 'to_stdout', is_flag=True, help='Печатать JSON в stdout вместо файлов')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном report.html.j2'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option('--log-format', 'log_format', default=DEFAULT_FORMAT, help='Строка формата для логов')
def cli(seed, config_path, workers, max_pages, timeout, crawl_timeout, output_dir,
        to_stdout, pretty, html_output, template_dir, log_level, log_file, log_format):
    """Обойти сайт, начиная с SEED, и сохранить найденные ссылки."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format,
    )
    try:
        cfg = Engine.load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    overrides = {
        'workers': workers,
        'max_pages': max_pages,
        'timeout': timeout,
        'crawl_timeout': crawl_timeout,
        'output_dir': output_dir,
        'pretty': pretty or None,
    }
    cfg = cfg.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    engine = Engine(cfg)
    try:
        report = engine.start_crawl(seed)
    except LinkScoutError as e:
        print_error(f'Ошибка при обходе: {e}')
    except Exception as e:
        print_error(f'Непредвиденная ошибка при обходе: {e}')

    if to_stdout:
        engine.write(report, JsonStreamSink(sys.stdout, pretty=cfg.pretty))
    else:
        sink = JsonFileSink(cfg.output_dir, pretty=cfg.pretty)
        try:
            engine.write(report, sink)
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')
        click.echo(f'Links by page: {sink.per_page_path}', err=True)
        click.echo(f'All links: {sink.unique_links_path}', err=True)

    if html_output:
        try:
            saved_html = render_html(report, html_output, template_dir)
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')
        click.echo(f'HTML report: {saved_html}', err=True)

    click.echo(
        f'{len(report.pages)} pages, {len(report.failed_pages)} failed, '
        f'{report.unique_link_count} unique links',
        err=True,
    )


if __name__ == "__main__":
    cli()
