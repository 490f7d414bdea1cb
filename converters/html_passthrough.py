"""HTML passthrough for notes too rich to flatten into text."""

import copy
import logging

from bs4 import BeautifulSoup

from archive.archive_reader import RESOURCE_PREFIX

logger = logging.getLogger('wiznote_exporter.converters.htmlpassthrough')


def prepare_html_document(document: BeautifulSoup, title: str, resource_dir: str) -> BeautifulSoup:
    """
    Return a copy of ``document`` ready to be saved as a standalone file.

    The copy gets ``title`` as its ``<title>`` (creating ``<head>`` and
    ``<title>`` when missing) and every embedded image pointing at
    ``resource_dir`` instead of the archive's resource folder. The input tree
    is left untouched.
    """
    result = copy.copy(document)

    head = result.find('head')
    if head is None:
        logger.debug("Document has no <head>, creating one")
        head = result.new_tag('head')
        html_tag = result.find('html')
        if html_tag is not None:
            html_tag.insert(0, head)
        else:
            result.insert(0, head)

    title_tag = head.find('title', recursive=False)
    if title_tag is None:
        title_tag = result.new_tag('title')
        head.append(title_tag)
    title_tag.string = title

    for img in result.find_all('img'):
        src = img.get('src')
        if src and src.startswith(RESOURCE_PREFIX):
            img['src'] = f"{resource_dir}/{src[len(RESOURCE_PREFIX):]}"

    return result


def serialize_html(document: BeautifulSoup) -> str:
    """Serialize a tree verbatim; a declared charset is rewritten to UTF-8."""
    return document.decode(eventual_encoding='utf-8')


__all__ = ['prepare_html_document', 'serialize_html']
