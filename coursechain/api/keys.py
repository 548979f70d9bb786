"""Typed application keys."""

from aiohttp import web

from coursechain.services.blockchain.service_facade import CourseContractService


SERVICE_KEY = web.AppKey("course_service", CourseContractService)
