class Templates:
    """Шаблоны для генерации файлов"""

    header = """/*
 * This file was generated by swagger-generator
 * Do not modify this file manually.{info_lines}
 */"""

    # Аннотации размечены <% %>: typed-вариант их сохраняет, untyped - удаляет
    axios_import = """import axios from 'axios';<%
import type { AxiosRequestConfig } from 'axios';%>"""

    types_import = """<%
import type { {names} } from './types';%>"""

    runtime = """export const BASE_URL = {base_url};

export const client = axios.create({ baseURL: BASE_URL });

function buildQuery(params<%: Array<[string, unknown]>%>)<%: string%> {
\tconst parts<%: string[]%> = [];
\tfor (const [key, value] of params) {
\t\tif (value === undefined || value === null) {
\t\t\tcontinue;
\t\t}
\t\tconst values = Array.isArray(value) ? value : [value];
\t\tfor (const item of values) {
\t\t\tparts.push(`${encodeURIComponent(key)}=${encodeURIComponent(String(item))}`);
\t\t}
\t}
\treturn parts.length ? `?${parts.join('&')}` : '';
}

function buildHeaders(base<%: unknown%>, params<%: Array<[string, unknown]>%>)<%: Record<string, string>%> {
\tconst headers<%: Record<string, string>%> = Object.assign({}, base);
\tfor (const [key, value] of params) {
\t\tif (value === undefined || value === null) {
\t\t\tcontinue;
\t\t}
\t\theaders[key] = String(value);
\t}
\treturn headers;
}"""

    empty_types = "export {};"


templates = Templates()
