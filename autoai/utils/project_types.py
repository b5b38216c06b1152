"""
Project Type Catalog

FLOW OVERVIEW
- PROJECT_TYPES: html, vue, android, miniprogram, react
  • name, icon, tech_stack, ai_prompt and base_structure (path -> template).
- get_project_type_config(type)
  • Unknown or missing types fall back to 'vue'.
- generate_project_files(type, project_name)
  • Substitutes {{project_name}} in every template of the base structure.
"""

import copy
from typing import Any, Dict, List

DEFAULT_PROJECT_TYPE = 'vue'
PROJECT_NAME_PLACEHOLDER = '{{project_name}}'

_HTML_INDEX = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{project_name}}</title>
    <style>
        body { font-family: system-ui, sans-serif; margin: 0; color: #2c3e50; }
        header { padding: 2rem; background: #4f46e5; color: #fff; text-align: center; }
        main { max-width: 960px; margin: 2rem auto; padding: 0 1rem; }
        .card { padding: 1.5rem; border-radius: 8px; box-shadow: 0 2px 8px rgba(0, 0, 0, .1); }
    </style>
</head>
<body>
    <header>
        <h1>{{project_name}}</h1>
        <p>A modern responsive page</p>
    </header>
    <main>
        <section class="card">
            <h2>Welcome</h2>
            <button id="greet">Say hello</button>
            <p id="output"></p>
        </section>
    </main>
    <script>
        document.getElementById('greet').addEventListener('click', function () {
            document.getElementById('output').textContent = 'Hello from {{project_name}}!';
        });
    </script>
</body>
</html>"""

_HTML_PACKAGE = """{
  "name": "{{project_name}}",
  "version": "1.0.0",
  "description": "Modern HTML project",
  "main": "index.html",
  "scripts": {
    "start": "npx http-server . -p 8080",
    "dev": "npx live-server ."
  },
  "keywords": ["html", "css", "javascript"],
  "license": "MIT"
}"""

_ANDROID_GRADLE = """plugins {
    id 'com.android.application'
    id 'org.jetbrains.kotlin.android'
}

android {
    namespace 'com.example.{{project_name}}'
    compileSdk 34

    defaultConfig {
        applicationId "com.example.{{project_name}}"
        minSdk 24
        targetSdk 34
        versionCode 1
        versionName "1.0"
    }
}

dependencies {
    implementation 'androidx.core:core-ktx:1.12.0'
    implementation 'androidx.appcompat:appcompat:1.6.1'
    implementation 'com.google.android.material:material:1.11.0'
    implementation 'androidx.lifecycle:lifecycle-viewmodel-ktx:2.7.0'
}"""

_ANDROID_ACTIVITY = """package com.example.{{project_name}}

import android.os.Bundle
import androidx.activity.viewModels
import androidx.appcompat.app.AppCompatActivity
import android.widget.TextView

class MainActivity : AppCompatActivity() {
    private val viewModel: MainViewModel by viewModels()

    override fun onCreate(savedInstanceState: Bundle?) {
        super.onCreate(savedInstanceState)
        setContentView(R.layout.activity_main)
        findViewById<TextView>(R.id.greeting).text = viewModel.greeting
    }
}"""

_ANDROID_VIEWMODEL = """package com.example.{{project_name}}

import androidx.lifecycle.ViewModel

class MainViewModel : ViewModel() {
    val greeting: String = "Hello from {{project_name}}"
}"""

_ANDROID_LAYOUT = """<?xml version="1.0" encoding="utf-8"?>
<LinearLayout xmlns:android="http://schemas.android.com/apk/res/android"
    android:layout_width="match_parent"
    android:layout_height="match_parent"
    android:gravity="center"
    android:orientation="vertical">

    <TextView
        android:id="@+id/greeting"
        android:layout_width="wrap_content"
        android:layout_height="wrap_content"
        android:textSize="24sp" />
</LinearLayout>"""

_ANDROID_MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android">
    <application
        android:label="{{project_name}}"
        android:theme="@style/Theme.Material3.DayNight">
        <activity android:name=".MainActivity" android:exported="true">
            <intent-filter>
                <action android:name="android.intent.action.MAIN" />
                <category android:name="android.intent.category.LAUNCHER" />
            </intent-filter>
        </activity>
    </application>
</manifest>"""

_MINIPROGRAM_APP_JSON = """{
  "pages": [
    "pages/index/index",
    "pages/about/about"
  ],
  "window": {
    "navigationBarTitleText": "{{project_name}}",
    "navigationBarBackgroundColor": "#ffffff",
    "navigationBarTextStyle": "black"
  },
  "sitemapLocation": "sitemap.json"
}"""

_MINIPROGRAM_INDEX_JS = """Page({
  data: {
    title: '{{project_name}}',
    count: 0
  },
  increment() {
    this.setData({ count: this.data.count + 1 })
    wx.showToast({ title: 'Clicked', icon: 'success' })
  }
})"""

_REACT_PACKAGE = """{
  "name": "{{project_name}}",
  "version": "1.0.0",
  "private": true,
  "dependencies": {
    "@reduxjs/toolkit": "^2.0.0",
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "react-redux": "^9.0.0",
    "react-router-dom": "^6.20.0"
  },
  "scripts": {
    "start": "react-scripts start",
    "build": "react-scripts build"
  }
}"""

_REACT_APP = """import React from 'react';
import { BrowserRouter, Routes, Route, Link } from 'react-router-dom';
import Home from './pages/Home';
import About from './pages/About';
import './App.css';

function App() {
  return (
    <BrowserRouter>
      <nav className="layout">
        <Link to="/">Home</Link> | <Link to="/about">About</Link>
      </nav>
      <Routes>
        <Route path="/" element={<Home />} />
        <Route path="/about" element={<About />} />
      </Routes>
    </BrowserRouter>
  );
}

export default App;"""

_REACT_INDEX = """import React from 'react';
import ReactDOM from 'react-dom/client';
import { Provider } from 'react-redux';
import { store } from './store';
import App from './App';
import './index.css';

ReactDOM.createRoot(document.getElementById('root')).render(
  <Provider store={store}>
    <App />
  </Provider>
);"""

_REACT_COUNTER_SLICE = """import { createSlice } from '@reduxjs/toolkit';

const counterSlice = createSlice({
  name: 'counter',
  initialState: { value: 0 },
  reducers: {
    increment: (state) => { state.value += 1; },
    decrement: (state) => { state.value -= 1; }
  }
});

export const { increment, decrement } = counterSlice.actions;
export default counterSlice.reducer;"""

PROJECT_TYPES: Dict[str, Dict[str, Any]] = {
    'html': {
        'name': 'HTML Project',
        'icon': '🌐',
        'tech_stack': 'HTML5, CSS3, JavaScript, Bootstrap',
        'ai_prompt': (
            "You are an expert HTML front-end developer helping the user build a modern HTML project.\n\n"
            "Requirements:\n"
            "- Semantic HTML5 and a responsive layout that works on mobile\n"
            "- Modern CSS and interactive JavaScript with clear comments\n"
            "- Inline all CSS in a <style> tag in <head> and all JavaScript in a <script> tag at the "
            "end of <body>; never reference external files such as styles.css or script.js\n"
            "- Every page must be complete and runnable on its own"
        ),
        'base_structure': {
            'index.html': _HTML_INDEX,
            'package.json': _HTML_PACKAGE,
        },
    },
    'vue': {
        'name': 'Vue Project',
        'icon': '💚',
        'tech_stack': 'Vue3, Vue Router, Pinia, Element Plus',
        'ai_prompt': (
            "You are an expert Vue.js developer helping the user build a modern Vue 3 project.\n\n"
            "Requirements:\n"
            "- Vue 3 Composition API single-file components with template, script and scoped style\n"
            "- Only generate component files: src/App.vue, pages in src/views/, shared components "
            "in src/components/\n"
            "- Do not generate index.html, src/main.js, src/router/index.js, package.json, "
            "vite.config.js or other configuration files\n"
            "- Each component must be self-contained and previewable on its own; communicate "
            "through props and emit"
        ),
        'base_structure': {
            'src/App.vue': "<!-- Root component of {{project_name}} -->\n<!-- Vue 3 Composition API -->",
            'src/views/Home.vue': "<!-- Home page -->\n<!-- Vue 3 Composition API, responsive layout -->",
            'src/views/About.vue': "<!-- About page -->\n<!-- Vue 3 Composition API, responsive layout -->",
            'src/components/WelcomeMessage.vue': "<!-- Welcome message -->\n<!-- Reusable component -->",
            'src/components/FeatureList.vue': "<!-- Feature list -->\n<!-- Reusable component -->",
        },
    },
    'android': {
        'name': 'Android Project',
        'icon': '🤖',
        'tech_stack': 'Java, Kotlin, Android SDK, Gradle',
        'ai_prompt': (
            "You are an expert Android developer helping the user build a modern Android app.\n\n"
            "Requirements:\n"
            "- Kotlin as the main language with an MVVM architecture\n"
            "- Material Design components and responsive layouts\n"
            "- Provide Activity/Fragment code, layout XML, ViewModel and Gradle configuration"
        ),
        'base_structure': {
            'build.gradle': _ANDROID_GRADLE,
            'src/main/java/com/example/app/MainActivity.kt': _ANDROID_ACTIVITY,
            'src/main/java/com/example/app/MainViewModel.kt': _ANDROID_VIEWMODEL,
            'src/main/res/layout/activity_main.xml': _ANDROID_LAYOUT,
            'AndroidManifest.xml': _ANDROID_MANIFEST,
        },
    },
    'miniprogram': {
        'name': 'Mini Program',
        'icon': '📱',
        'tech_stack': 'WeChat Mini Program, WXML, WXSS, JavaScript',
        'ai_prompt': (
            "You are an expert WeChat Mini Program developer helping the user build a modern mini program.\n\n"
            "Requirements:\n"
            "- Native mini program development with WXML templates, WXSS styles and JavaScript logic\n"
            "- Component-based pages and a good user experience\n"
            "- Provide WXML structure, WXSS styles, page logic and component code"
        ),
        'base_structure': {
            'app.json': _MINIPROGRAM_APP_JSON,
            'app.js': "App({\n  globalData: {\n    appName: '{{project_name}}'\n  }\n})",
            'app.wxss': "/**app.wxss**/\n.container {\n  display: flex;\n  flex-direction: column;\n  align-items: center;\n  padding: 200rpx 0;\n}",
            'pages/index/index.wxml': '<view class="container">\n  <text class="title">{{title}}</text>\n  <button bindtap="increment">Count: {{count}}</button>\n</view>',
            'pages/index/index.wxss': ".title {\n  font-size: 48rpx;\n  margin-bottom: 40rpx;\n}",
            'pages/index/index.js': _MINIPROGRAM_INDEX_JS,
            'pages/about/about.wxml': '<view class="container">\n  <text>About {{project_name}}</text>\n</view>',
            'pages/about/about.wxss': ".container {\n  padding: 40rpx;\n}",
            'pages/about/about.js': "Page({\n  data: {}\n})",
            'sitemap.json': '{\n  "rules": [{\n    "action": "allow",\n    "page": "*"\n  }]\n}',
        },
    },
    'react': {
        'name': 'React Project',
        'icon': '⚛️',
        'tech_stack': 'React, Redux, JSX, Webpack',
        'ai_prompt': (
            "You are an expert React developer helping the user build a modern React project.\n\n"
            "Requirements:\n"
            "- React 18+ function components and Hooks\n"
            "- Redux Toolkit for state and React Router for routing\n"
            "- A modern UI component library and responsive design\n"
            "- Provide component code, store slices, routing configuration and styles"
        ),
        'base_structure': {
            'package.json': _REACT_PACKAGE,
            'public/index.html': '<!DOCTYPE html>\n<html lang="en">\n<head>\n  <meta charset="UTF-8">\n  <title>{{project_name}}</title>\n</head>\n<body>\n  <div id="root"></div>\n</body>\n</html>',
            'src/index.js': _REACT_INDEX,
            'src/App.js': _REACT_APP,
            'src/App.css': ".layout {\n  display: flex;\n  gap: 1rem;\n  padding: 1rem;\n}",
            'src/index.css': "body {\n  margin: 0;\n  font-family: system-ui, sans-serif;\n}",
            'src/pages/Home.js': "import React from 'react';\n\nexport default function Home() {\n  return <h1>{{project_name}}</h1>;\n}",
            'src/pages/About.js': "import React from 'react';\n\nexport default function About() {\n  return <p>About {{project_name}}</p>;\n}",
            'src/store/index.js': "import { configureStore } from '@reduxjs/toolkit';\nimport counterReducer from './counterSlice';\n\nexport const store = configureStore({\n  reducer: { counter: counterReducer }\n});",
            'src/store/counterSlice.js': _REACT_COUNTER_SLICE,
        },
    },
}


def get_project_type_config(project_type: str) -> Dict[str, Any]:
    return PROJECT_TYPES.get(project_type) or PROJECT_TYPES[DEFAULT_PROJECT_TYPE]


def resolve_project_type(project_type: str) -> str:
    """Known type key, 'vue' for anything else"""
    return project_type if project_type in PROJECT_TYPES else DEFAULT_PROJECT_TYPE


def get_all_project_types() -> List[Dict[str, Any]]:
    """Catalog for the UI; base file bodies are left out, only their paths are listed"""
    types = []
    for key, config in PROJECT_TYPES.items():
        types.append({
            'type': key,
            'name': config['name'],
            'icon': config['icon'],
            'tech_stack': config['tech_stack'],
            'ai_prompt': config['ai_prompt'],
            'base_files': list(config['base_structure'].keys()),
        })
    return types


def get_ai_prompt(project_type: str) -> str:
    return get_project_type_config(project_type)['ai_prompt']


def get_base_structure(project_type: str) -> Dict[str, str]:
    return copy.deepcopy(get_project_type_config(project_type)['base_structure'])


def generate_project_files(project_type: str, project_name: str) -> Dict[str, str]:
    """Initial files of a new project, keyed by relative path"""
    return {
        path: template.replace(PROJECT_NAME_PLACEHOLDER, project_name)
        for path, template in get_base_structure(project_type).items()
    }
