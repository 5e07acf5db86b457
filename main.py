import logging
import os

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

import config
from db.database import engine
from db import models
from db.db_uploader import init_data
from routers import api
import uvicorn

logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

models.Base.metadata.create_all(bind=engine)

init_data()

description = """
Booking API for shared scientific infrastructure.
Users reserve timeslots of rooms and equipment, managers and admins approve, reject or cancel the requests.

The following endpoints are available
## Auth
* **Login / register**
* **Email verification and password reset**

## Infrastructures
* **Active infrastructures and their available timeslots**
* **Infrastructure administration**
* **Booking questions**

## Bookings
* **Timeslot creation and cancellation**
* **Booking requests and status changes**
* **Guest bookings and email action links**

## Administration
* **User roles, blacklist and manager assignments**
* **Email preferences**
"""
tags_metadata = [
    {
        'name': 'auth',
        'description': 'Login, registration, email verification and password reset'
    },
    {
        'name': 'infrastructures',
        'description': 'Bookable rooms and equipment'
    },
    {
        'name': 'questions',
        'description': 'Questions users answer when booking an infrastructure'
    },
    {
        'name': 'bookings',
        'description': 'Timeslot and booking management for admins and managers'
    },
    {
        'name': 'my bookings',
        'description': 'Bookings of the logged in user'
    },
    {
        'name': 'guest bookings',
        'description': 'Bookings without an account, confirmed via email'
    },
    {
        'name': 'email actions',
        'description': 'Approve and reject links mailed to managers'
    },
    {
        'name': 'user management',
        'description': 'Admin only user administration'
    },
    {
        'name': 'preferences',
        'description': 'Email notification settings'
    }
]

app = FastAPI(
    title='Scientific Infrastructure Booking API',
    description=description,
    summary='Booking and scheduling of shared scientific infrastructure',
    openapi_tags=tags_metadata
)

app.include_router(api.router)

os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount('/uploads', StaticFiles(directory=config.UPLOAD_DIR), name='uploads')


@app.get('/', name="Health check")
def read_root():
    return {'status': 'ok'}


if __name__ == '__main__':
    uvicorn.run('main:app')
