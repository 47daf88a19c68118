"""
HTTP transport for the entity service.

Run:
    uvicorn entity_ws.http_app:app --port 8080
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response

from . import config, mapper
from .dispatcher import Dispatcher
from .endpoint import build_dispatcher
from .security import interceptors_from_config
from .soap import CONTENT_TYPE
from .store import load_store

logger = logging.getLogger(__name__)

WSDL_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<wsdl:definitions xmlns:wsdl="http://schemas.xmlsoap.org/wsdl/"
                  xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"
                  xmlns:xs="http://www.w3.org/2001/XMLSchema"
                  xmlns:tns="{ns}"
                  targetNamespace="{ns}">
    <wsdl:types>
        <xs:schema targetNamespace="{ns}" elementFormDefault="qualified">
            <xs:element name="{request}">
                <xs:complexType>
                    <xs:sequence>
                        <xs:element name="id" type="xs:int"/>
                    </xs:sequence>
                </xs:complexType>
            </xs:element>
            <xs:element name="{response}">
                <xs:complexType>
                    <xs:sequence>
                        <xs:element name="entity" type="tns:entity"/>
                    </xs:sequence>
                </xs:complexType>
            </xs:element>
            <xs:complexType name="entity">
                <xs:sequence>
                    <xs:element name="id" type="xs:int"/>
                    <xs:element name="name" type="xs:string"/>
                </xs:sequence>
            </xs:complexType>
        </xs:schema>
    </wsdl:types>
    <wsdl:message name="{request}">
        <wsdl:part element="tns:{request}" name="{request}"/>
    </wsdl:message>
    <wsdl:message name="{response}">
        <wsdl:part element="tns:{response}" name="{response}"/>
    </wsdl:message>
    <wsdl:portType name="Entities">
        <wsdl:operation name="getEntity">
            <wsdl:input message="tns:{request}" name="{request}"/>
            <wsdl:output message="tns:{response}" name="{response}"/>
        </wsdl:operation>
    </wsdl:portType>
    <wsdl:binding name="EntitiesSoap11" type="tns:Entities">
        <soap:binding style="document" transport="http://schemas.xmlsoap.org/soap/http"/>
        <wsdl:operation name="getEntity">
            <soap:operation soapAction="{action}"/>
            <wsdl:input name="{request}"><soap:body use="literal"/></wsdl:input>
            <wsdl:output name="{response}"><soap:body use="literal"/></wsdl:output>
        </wsdl:operation>
    </wsdl:binding>
    <wsdl:service name="EntitiesService">
        <wsdl:port binding="tns:EntitiesSoap11" name="EntitiesSoap11">
            <soap:address location="{location}"/>
        </wsdl:port>
    </wsdl:service>
</wsdl:definitions>
"""


def render_wsdl(location: str) -> str:
    return WSDL_TEMPLATE.format(
        ns=mapper.ENTITY_NS,
        request=mapper.REQUEST,
        response=mapper.RESPONSE,
        action=mapper.ACTION,
        location=location,
    )


def create_app(dispatcher: Dispatcher, soap_path: str = config.SOAP_PATH) -> FastAPI:
    app = FastAPI(title="entity-ws")
    app.state.dispatcher = dispatcher

    @app.post(soap_path)
    async def soap_endpoint(req: Request):
        body = (await req.body()).decode("utf-8", errors="replace")
        soap_action = req.headers.get("SOAPAction")
        logger.info("Received SOAP request action=%s: %s", soap_action, body[:200])

        result = app.state.dispatcher.dispatch(body, soap_action)
        # SOAP 1.1 over HTTP reports every fault with status 500
        status_code = 500 if result.is_fault else 200
        return Response(content=result.body, status_code=status_code, media_type=CONTENT_TYPE)

    @app.get(f"{soap_path}/entities.wsdl")
    async def wsdl(req: Request):
        location = str(req.url_for("soap_endpoint"))
        return Response(content=render_wsdl(location), media_type=CONTENT_TYPE)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def _default_app() -> FastAPI:
    config.setup_logging()
    return create_app(build_dispatcher(load_store(config.DATA_PATH), interceptors_from_config()))


app = _default_app()
